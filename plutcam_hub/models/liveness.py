"""
In-memory liveness tracking for PlutCam Hub.

One LivenessRecord per camera, created on the first accepted hello or frame
and kept until the process exits. Records are immutable; every update builds
a merged copy and swaps it in under the registry lock, so readers always get
a whole record.
"""
import threading
import time
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import Optional


# Python attribute -> key used by the dashboard's JSON
_WIRE_NAMES = {
    'last_at': 'lastAt',
    'last_at_ms': 'lastAtMs',
    'bytes': 'bytes',
    'ip': 'ip',
    'rssi': 'rssi',
    'heap': 'heap',
    'version': 'version',
    'hello_at': 'helloAt',
    'hello_at_ms': 'helloAtMs',
}


@dataclass(frozen=True)
class LivenessRecord:
    """Most recent known state of one camera. Unset fields are None."""

    # Frame receipt
    last_at: Optional[str] = None
    last_at_ms: Optional[int] = None
    last_frame_mono: Optional[float] = None
    bytes: Optional[int] = None

    # Telemetry
    ip: Optional[str] = None
    rssi: Optional[float] = None
    heap: Optional[float] = None
    version: Optional[str] = None
    hello_at: Optional[str] = None
    hello_at_ms: Optional[int] = None
    last_hello_mono: Optional[float] = None

    def merge(self, update: 'LivenessRecord') -> 'LivenessRecord':
        """Return a copy with every field that is set on `update` replaced"""
        changes = {
            f.name: getattr(update, f.name)
            for f in fields(update)
            if getattr(update, f.name) is not None
        }
        return replace(self, **changes)

    def last_seen_mono(self) -> Optional[float]:
        """Monotonic time of the latest frame or hello"""
        stamps = [t for t in (self.last_frame_mono, self.last_hello_mono) if t is not None]
        return max(stamps) if stamps else None

    def is_online(self, offline_after: float, now: Optional[float] = None) -> bool:
        seen = self.last_seen_mono()
        if seen is None:
            return False
        now = time.monotonic() if now is None else now
        return now - seen <= offline_after

    def to_dict(self):
        """Convert to dictionary for API responses (unset fields omitted)"""
        out = {}
        for attr, key in _WIRE_NAMES.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out


def _now_stamps():
    """Wall-clock ISO string, wall-clock epoch ms and monotonic seconds"""
    now = datetime.now(timezone.utc)
    iso = now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
    return iso, int(now.timestamp() * 1000), time.monotonic()


def frame_update(size: int) -> LivenessRecord:
    """Build the partial record stamped on an accepted frame upload"""
    iso, ms, mono = _now_stamps()
    return LivenessRecord(last_at=iso, last_at_ms=ms, last_frame_mono=mono, bytes=size)


def hello_update(ip=None, rssi=None, heap=None, version=None) -> LivenessRecord:
    """Build the partial record stamped on a telemetry hello"""
    iso, ms, mono = _now_stamps()
    return LivenessRecord(
        ip=ip,
        rssi=rssi,
        heap=heap,
        version=version,
        hello_at=iso,
        hello_at_ms=ms,
        last_hello_mono=mono,
    )


class LivenessRegistry:
    """Thread-safe camera id -> LivenessRecord table"""

    def __init__(self):
        self._records = {}
        self._lock = threading.Lock()

    def merge(self, camera_id: str, update: LivenessRecord) -> LivenessRecord:
        """Merge `update` into the camera's record, creating it if needed"""
        with self._lock:
            current = self._records.get(camera_id, LivenessRecord())
            merged = current.merge(update)
            self._records[camera_id] = merged
            return merged

    def get(self, camera_id: str) -> Optional[LivenessRecord]:
        with self._lock:
            return self._records.get(camera_id)

    def snapshot(self) -> dict:
        """Point-in-time copy of every record"""
        with self._lock:
            return dict(self._records)

    def address_of(self, camera_id: str) -> Optional[str]:
        record = self.get(camera_id)
        return record.ip if record else None
