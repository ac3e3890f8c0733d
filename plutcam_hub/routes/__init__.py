"""
Route blueprints for PlutCam Hub.
"""
from .main import main_bp
from .api import api_bp
