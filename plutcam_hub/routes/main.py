"""
Main routes for PlutCam Hub.
Serves the latest frame per camera and the gated admin key listing.
"""
from flask import Blueprint, Response, jsonify

from ..auth import admin_required
from ..extensions import get_hub
from ..security import audit_log, get_client_ip

main_bp = Blueprint('main', __name__)


@main_bp.route('/cams/<camera_id>.jpg')
def latest_frame(camera_id):
    """Raw JPEG of the camera's most recent accepted upload"""
    hub = get_hub()
    if camera_id not in hub.cameras:
        return jsonify({'error': 'no frame'}), 404

    data = hub.frames.read(camera_id)
    if data is None:
        return jsonify({'error': 'no frame'}), 404
    return Response(data, mimetype='image/jpeg')


@main_bp.route('/admin/keys')
@admin_required
def admin_keys():
    """Camera keys, for provisioning firmware"""
    hub = get_hub()
    audit_log('ADMIN_KEYS_READ', get_client_ip(), '-', f'{len(hub.keys)} key(s)')
    return jsonify({'cams': hub.cameras.to_list(), 'keys': dict(hub.keys)})
