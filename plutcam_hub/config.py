"""
Configuration classes for PlutCam Hub.
"""
import os


DEFAULT_CAMERAS = 'home:Home,yard:Yard,backyard:Backyard,top:Top'


class ConfigError(Exception):
    """Raised when the environment describes an unusable configuration"""


def parse_cameras(spec: str) -> list[dict]:
    """
    Parse a camera list of the form "id:Name,id:Name".
    The display name defaults to the id when omitted.
    """
    cameras = []
    seen = set()
    for entry in spec.split(','):
        entry = entry.strip()
        if not entry:
            continue
        cam_id, _, name = entry.partition(':')
        cam_id = cam_id.strip()
        name = name.strip() or cam_id
        if not cam_id:
            raise ConfigError(f"Camera entry without an id: {entry!r}")
        if cam_id in seen:
            raise ConfigError(f"Duplicate camera id: {cam_id}")
        seen.add(cam_id)
        cameras.append({'id': cam_id, 'name': name})
    if not cameras:
        raise ConfigError("No cameras configured")
    return cameras


class Config:
    """Base configuration class"""

    # Server
    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '1212'))
    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'

    # Storage
    DATA_DIR = os.environ.get('DATA_DIR', os.path.abspath('./data'))
    AUDIT_LOG_DIR = os.environ.get('AUDIT_LOG_DIR')  # defaults to DATA_DIR/logs

    # Static camera set
    CAMERAS = os.environ.get('PLUTCAM_CAMS', DEFAULT_CAMERAS)

    # Control credentials (empty disables the scheme)
    FLASH_PASS = os.environ.get('FLASH_PASS', '')
    ADMIN_TOKEN = os.environ.get('ADMIN_TOKEN', '')

    # Frame uploads
    MAX_CONTENT_LENGTH = int(os.environ.get('MAX_FRAME_BYTES', '1500000'))
    MIN_FRAME_BYTES = int(os.environ.get('MIN_FRAME_BYTES', '100'))

    # Flash relay
    RELAY_TIMEOUT = float(os.environ.get('RELAY_TIMEOUT', '2.5'))
    RELAY_BODY_LIMIT = 200

    # Seconds without a frame or hello before a camera counts as offline
    OFFLINE_AFTER = float(os.environ.get('OFFLINE_AFTER', '12'))
