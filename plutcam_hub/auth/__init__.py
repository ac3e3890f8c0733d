"""
Authentication module for PlutCam Hub.
"""
from .handlers import (
    DEVICE_KEY_HEADER,
    FLASH_PASS_HEADER,
    AdminTokenAuth,
    FlashPasswordAuth,
    admin_required,
    authorize_flash,
    build_flash_strategies,
    camera_required,
)
