import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from plutcam_hub import create_app
from plutcam_hub.config import Config


# Smallest thing the hub will take as a frame: SOI marker, padding, EOI marker
JPEG = b'\xff\xd8\xff\xe0' + bytes(range(256)) * 2 + b'\xff\xd9'


@pytest.fixture
def make_app(tmp_path):
    """Build an app rooted in tmp_path; keyword args override Config"""
    def _make(**overrides):
        attrs = {
            'TESTING': True,
            'DATA_DIR': str(tmp_path / 'data'),
            'AUDIT_LOG_DIR': str(tmp_path / 'logs'),
            'CAMERAS': 'home:Home,yard:Yard',
            'FLASH_PASS': '',
            'ADMIN_TOKEN': '',
            'RELAY_TIMEOUT': 0.5,
        }
        attrs.update(overrides)
        return create_app(type('TestConfig', (Config,), attrs))
    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def keys(tmp_path, app):
    return json.loads((tmp_path / 'data' / 'keys.json').read_text())


def cam_headers(key):
    return {'X-Pluto-Key': key}


class _FlashHandler(BaseHTTPRequestHandler):
    """Stands in for the camera firmware's /flash endpoint"""

    def do_POST(self):
        self.server.requests.append(self.path)
        status, body = self.server.reply
        payload = body.encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def camera_server():
    """A camera web server on 127.0.0.1; set `.reply` to (status, body)"""
    server = ThreadingHTTPServer(('127.0.0.1', 0), _FlashHandler)
    server.requests = []
    server.reply = (200, '{"ok":true,"flash":true}')
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
