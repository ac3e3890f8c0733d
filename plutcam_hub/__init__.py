"""
PlutCam Hub - Flask Application Factory
"""
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config, parse_cameras
from .extensions import Hub
from .security import add_security_headers, init_audit_log


def create_app(config_class=Config):
    """
    Application factory pattern for Flask app creation.
    Raises KeyStoreError or ConfigError if the hub cannot start safely.
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class)

    data_dir = app.config['DATA_DIR']
    os.makedirs(data_dir, exist_ok=True)
    init_audit_log(app.config.get('AUDIT_LOG_DIR') or os.path.join(data_dir, 'logs'))

    # Static camera set and their keys
    from .models.camera import CameraSet
    from .models.liveness import LivenessRegistry
    from .services.keys import KeyStore
    from .services.frames import FrameStore
    from .services.relay import FlashRelay
    from .auth import build_flash_strategies

    cameras = CameraSet.from_config(parse_cameras(app.config['CAMERAS']))
    keys = KeyStore(os.path.join(data_dir, 'keys.json'), cameras.ids()).load()

    hub = Hub(
        config=app.config,
        cameras=cameras,
        keys=keys,
        registry=LivenessRegistry(),
        frames=FrameStore(os.path.join(data_dir, 'frames')),
        relay=FlashRelay(
            timeout=app.config['RELAY_TIMEOUT'],
            body_limit=app.config['RELAY_BODY_LIMIT'],
        ),
        flash_strategies=build_flash_strategies(app.config),
    )
    hub.init_app(app)

    # Add security headers to all responses
    app.after_request(add_security_headers)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        """Render aborts and werkzeug errors as JSON"""
        if e.code is None or e.code < 400:
            return e
        return jsonify({'error': e.description}), e.code

    # Register blueprints
    from .routes import main_bp, api_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix='/api')

    if not app.config.get('FLASH_PASS'):
        print("[Auth] FLASH_PASS not set: password flash control disabled")
    if not app.config.get('ADMIN_TOKEN'):
        print("[Auth] ADMIN_TOKEN not set: admin token and /admin routes disabled")
    print(f"[System] Cameras: {', '.join(cameras.ids())}")

    return app
