"""
Application-owned state for PlutCam Hub.
Everything a request handler needs lives on one Hub object attached to the
Flask app, so there is no module-level mutable state.
"""
from flask import current_app


EXTENSION_NAME = 'plutcam'


class Hub:
    """Per-app state shared by the request handlers"""

    def __init__(self, config, cameras, keys, registry, frames, relay, flash_strategies):
        self.config = config
        self.cameras = cameras
        self.keys = keys
        self.registry = registry
        self.frames = frames
        self.relay = relay
        self.flash_strategies = flash_strategies

    def init_app(self, app):
        app.extensions[EXTENSION_NAME] = self


def get_hub() -> Hub:
    """The Hub of the current Flask app"""
    return current_app.extensions[EXTENSION_NAME]
