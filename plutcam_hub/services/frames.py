"""
Latest-frame storage for PlutCam Hub.
One JPEG per camera, replaced on every accepted upload.
"""
import os
import tempfile
from pathlib import Path
from typing import Optional


class FrameStore:
    """Stores the most recent JPEG for each camera under a directory"""

    def __init__(self, frames_dir):
        self.frames_dir = Path(frames_dir)
        self.frames_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, camera_id: str) -> Path:
        return self.frames_dir / f'{camera_id}.jpg'

    def save(self, camera_id: str, data: bytes) -> int:
        """
        Replace the camera's frame with `data`.

        Each write goes to its own temp file in the same directory and is
        renamed over the target, so readers see the old frame or the new
        one, never a partial file. Returns the number of bytes stored.
        """
        target = self.path_for(camera_id)
        fd, tmp_path = tempfile.mkstemp(prefix=f'.{camera_id}.', suffix='.tmp', dir=self.frames_dir)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, target)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        return len(data)

    def read(self, camera_id: str) -> Optional[bytes]:
        """Return the stored frame, or None if the camera never uploaded one"""
        try:
            return self.path_for(camera_id).read_bytes()
        except FileNotFoundError:
            return None
