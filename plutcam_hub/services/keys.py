"""
Per-camera secret keys for PlutCam Hub.
Keys are generated once, written to an owner-only JSON file and reused on
every later start.
"""
import json
import os
import secrets
import tempfile
from pathlib import Path


KEY_BYTES = 24  # 48 hex chars


class KeyStoreError(Exception):
    """The persisted key file exists but cannot be used"""


class KeyStore:
    """Loads or creates the camera id -> secret mapping"""

    def __init__(self, path, camera_ids):
        self.path = Path(path)
        self.camera_ids = list(camera_ids)

    def load(self) -> dict:
        """
        Return the key mapping for every configured camera.

        A missing file is created. A file that cannot be parsed raises
        KeyStoreError instead of being regenerated, because replacing it
        would lock out every deployed camera. Cameras missing from an
        existing file get a new key; existing keys are never changed.
        """
        if not self.path.exists():
            keys = {cam_id: self._new_key() for cam_id in self.camera_ids}
            self._write(keys)
            print(f"[Keys] Generated keys for {len(keys)} camera(s) (saved to {self.path})")
            return keys

        keys = self._read()
        missing = [cam_id for cam_id in self.camera_ids if cam_id not in keys]
        if missing:
            for cam_id in missing:
                keys[cam_id] = self._new_key()
            self._write(keys)
            print(f"[Keys] Added keys for new camera(s): {', '.join(missing)}")
        else:
            print(f"[Keys] Loaded keys for {len(self.camera_ids)} camera(s) from {self.path}")
        return keys

    def _read(self) -> dict:
        try:
            raw = self.path.read_text(encoding='utf-8')
        except OSError as e:
            raise KeyStoreError(f"Cannot read key file {self.path}: {e}") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise KeyStoreError(f"Key file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise KeyStoreError(f"Key file {self.path} must contain a JSON object")
        for cam_id, key in data.items():
            if not isinstance(key, str) or not key:
                raise KeyStoreError(f"Key file {self.path} has an invalid key for {cam_id!r}")
        return data

    def _write(self, keys: dict):
        """Write the mapping via a 0600 temp file and an atomic rename"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix='.keys.', suffix='.tmp', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(keys, f, indent=2)
                f.write('\n')
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @staticmethod
    def _new_key() -> str:
        return secrets.token_hex(KEY_BYTES)
