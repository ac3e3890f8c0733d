"""
Security utilities for PlutCam Hub.
Implements audit logging, response headers and credential comparison.
"""
import secrets
import logging
from pathlib import Path

from flask import request


# ============================================================================
# AUDIT LOGGING
# ============================================================================

_audit_logger = logging.getLogger('plutcam.audit')


def init_audit_log(log_dir):
    """Point the audit logger at `log_dir`/audit.log plus the console"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    for handler in list(_audit_logger.handlers):
        _audit_logger.removeHandler(handler)
        handler.close()

    _audit_logger.setLevel(logging.INFO)
    _audit_logger.propagate = False

    # Format: timestamp | event_type | ip | subject | details
    audit_file = log_dir / 'audit.log'
    file_handler = logging.FileHandler(audit_file)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    _audit_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('[Audit] %(message)s'))
    _audit_logger.addHandler(console_handler)

    print(f"[Security] Audit logging enabled: {audit_file}")


def audit_log(event_type: str, ip: str, subject: str = '-', details: str = ''):
    """Log a security-relevant event"""
    _audit_logger.info(f"{event_type} | {ip} | {subject} | {details}")


# ============================================================================
# CREDENTIALS
# ============================================================================

def secrets_match(expected: str, supplied: str) -> bool:
    """
    Constant-time comparison. An empty expected secret never matches,
    not even an empty supplied one.
    """
    if not expected or not supplied:
        return False
    return secrets.compare_digest(expected.encode('utf-8'), supplied.encode('utf-8'))


# ============================================================================
# SECURITY HEADERS
# ============================================================================

_NO_STORE_PREFIXES = ('/api/', '/admin/', '/cams/')


def add_security_headers(response):
    """Add security headers to response"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

    # Every poll and frame fetch must see current state
    if request.path.startswith(_NO_STORE_PREFIXES):
        response.headers['Cache-Control'] = 'no-store'

    return response


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def get_client_ip() -> str:
    """Get the client IP address, handling proxies"""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For').split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        return request.headers.get('X-Real-IP')
    return request.remote_addr or '127.0.0.1'
