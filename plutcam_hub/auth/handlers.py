"""
Authentication handlers for PlutCam Hub.

Cameras authenticate with their own key in the X-Pluto-Key header.
Flash control accepts either the admin token (?token=) or the shared flash
password (X-Flash-Pass header); each scheme is a separate strategy and an
unconfigured scheme never authorizes.
"""
from functools import wraps
from typing import Optional

from flask import abort, request

from ..extensions import get_hub
from ..security import audit_log, get_client_ip, secrets_match


DEVICE_KEY_HEADER = 'X-Pluto-Key'
FLASH_PASS_HEADER = 'X-Flash-Pass'


# ============================================================================
# DEVICE AUTH
# ============================================================================

def camera_required(f):
    """
    Decorator for camera-facing routes taking a `camera_id` argument.
    Unknown camera -> 404, missing or wrong key -> 401.
    """
    @wraps(f)
    def decorated_function(camera_id, *args, **kwargs):
        hub = get_hub()
        if camera_id not in hub.cameras:
            abort(404, description='unknown camId')

        supplied = request.headers.get(DEVICE_KEY_HEADER, '')
        if not secrets_match(hub.keys.get(camera_id, ''), supplied):
            reason = 'missing key' if not supplied else 'key mismatch'
            audit_log('DEVICE_AUTH_FAILURE', get_client_ip(), camera_id, f'{request.path} ({reason})')
            abort(401, description='unauthorized')

        return f(camera_id, *args, **kwargs)
    return decorated_function


# ============================================================================
# CONTROL AUTH
# ============================================================================

class AdminTokenAuth:
    """Admin token supplied as the `token` query parameter"""

    name = 'admin_token'

    def __init__(self, token: str):
        self.token = token or ''

    def is_configured(self) -> bool:
        return bool(self.token)

    def matches(self, req) -> bool:
        return secrets_match(self.token, req.args.get('token', ''))

    def allows(self, req) -> bool:
        return self.is_configured() and self.matches(req)


class FlashPasswordAuth:
    """Shared flash password supplied in the X-Flash-Pass header"""

    name = 'flash_pass'

    def __init__(self, password: str):
        self.password = password or ''

    def is_configured(self) -> bool:
        return bool(self.password)

    def matches(self, req) -> bool:
        return secrets_match(self.password, req.headers.get(FLASH_PASS_HEADER, ''))

    def allows(self, req) -> bool:
        return self.is_configured() and self.matches(req)


def build_flash_strategies(config) -> list:
    """Strategies in evaluation order"""
    return [
        AdminTokenAuth(config.get('ADMIN_TOKEN', '')),
        FlashPasswordAuth(config.get('FLASH_PASS', '')),
    ]


def authorize_flash(strategies, req) -> Optional[str]:
    """Return the name of the first strategy that allows `req`, else None"""
    for strategy in strategies:
        if strategy.allows(req):
            return strategy.name
    return None


# ============================================================================
# ADMIN AUTH
# ============================================================================

def admin_required(f):
    """
    Decorator for admin routes. The admin token must be configured,
    otherwise the route does not exist (404); a wrong token -> 401.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        admin = AdminTokenAuth(get_hub().config.get('ADMIN_TOKEN', ''))
        if not admin.is_configured():
            abort(404, description='not found')
        if not admin.matches(request):
            audit_log('ADMIN_AUTH_FAILURE', get_client_ip(), '-', request.path)
            abort(401, description='unauthorized')
        return f(*args, **kwargs)
    return decorated_function
