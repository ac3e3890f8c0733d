"""
API routes for PlutCam Hub.
Camera ingestion (hello, frame), status polling and flash relay.
"""
import math

from flask import Blueprint, jsonify, request

from ..auth import authorize_flash, camera_required
from ..extensions import get_hub
from ..models.liveness import frame_update, hello_update
from ..security import audit_log, get_client_ip
from ..services.relay import RelayError, parse_flash_state

api_bp = Blueprint("api", __name__)


@api_bp.route("/health")
def health_check():
    """Health check endpoint for system monitoring"""
    hub = get_hub()
    offline_after = hub.config["OFFLINE_AFTER"]
    records = hub.registry.snapshot()
    online = sum(1 for r in records.values() if r.is_online(offline_after))
    return jsonify(
        {
            "status": "healthy",
            "service": "PlutCam Hub",
            "cameras": {"total": len(hub.cameras), "online": online},
        }
    )


@api_bp.route("/cameras")
def list_cameras():
    """The configured camera set, for rendering dashboard tiles"""
    return jsonify(get_hub().cameras.to_list())


@api_bp.route("/cams")
def get_cams():
    """Latest liveness record for every camera that has reported"""
    hub = get_hub()
    records = hub.registry.snapshot()
    return jsonify(
        {cam_id: records[cam_id].to_dict() for cam_id in hub.cameras.ids() if cam_id in records}
    )


# =============================================================================
# CAMERA INGESTION
# =============================================================================


def _finite_number(value):
    # bool is an int subclass but never a valid reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        finite = math.isfinite(value)
    except OverflowError:
        # ints past float range
        return None
    return value if finite else None


def _clean_address(value):
    """host or host:port as reported by the camera, else None"""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or len(value) > 255:
        return None
    if any(c.isspace() or c in "/?#@\\" for c in value):
        return None
    return value


@api_bp.route("/cams/<camera_id>/hello", methods=["POST"])
@camera_required
def camera_hello(camera_id):
    """Telemetry check-in; every field is optional"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}

    version = payload.get("version")
    update = hello_update(
        ip=_clean_address(payload.get("ip")) or _clean_address(get_client_ip()),
        rssi=_finite_number(payload.get("rssi")),
        heap=_finite_number(payload.get("heap")),
        version=str(version) if version not in (None, "") else None,
    )
    get_hub().registry.merge(camera_id, update)
    return jsonify({"ok": True})


@api_bp.route("/cams/<camera_id>/frame", methods=["POST"])
@camera_required
def camera_frame(camera_id):
    """Replace the camera's latest JPEG"""
    hub = get_hub()

    content_type = (request.content_type or "").lower()
    if "image/jpeg" not in content_type:
        return jsonify({"error": "content-type must be image/jpeg"}), 415

    data = request.get_data(cache=False)
    if not data or len(data) < hub.config["MIN_FRAME_BYTES"]:
        return jsonify({"error": "invalid body"}), 400

    # Record only after the file is in place
    size = hub.frames.save(camera_id, data)
    hub.registry.merge(camera_id, frame_update(size))
    return jsonify({"ok": True})


# =============================================================================
# FLASH RELAY
# =============================================================================


@api_bp.route("/cams/<camera_id>/flash", methods=["POST"])
def camera_flash(camera_id):
    """Relay a flash on/off command to the camera's own web server"""
    hub = get_hub()
    if camera_id not in hub.cameras:
        return jsonify({"error": "unknown camId"}), 404

    ip = get_client_ip()
    scheme = authorize_flash(hub.flash_strategies, request)
    if scheme is None:
        audit_log("FLASH_AUTH_FAILURE", ip, camera_id, "No valid admin token or flash password")
        return jsonify({"error": "unauthorized"}), 401

    address = hub.registry.address_of(camera_id)
    if not address:
        return jsonify({"error": "no ip known yet (wait for hello)"}), 409

    on = parse_flash_state(request.args.get("on", "1"))
    try:
        result = hub.relay.send(camera_id, address, on)
    except RelayError as e:
        audit_log("FLASH_RELAY_FAILED", ip, camera_id, f"on={int(on)} via {scheme}: {e.detail}")
        return jsonify({"error": "relay failed", "detail": e.detail}), 502

    audit_log("FLASH_RELAY", ip, camera_id, f"on={int(on)} via {scheme} -> HTTP {result['status']}")
    return jsonify(result)
