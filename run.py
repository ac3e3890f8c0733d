#!/usr/bin/env python3
"""
PlutCam Hub - Entry Point
"""
import signal
import sys

from dotenv import load_dotenv

# Load environment variables before importing app
load_dotenv()

from plutcam_hub import create_app
from plutcam_hub.config import Config, ConfigError
from plutcam_hub.services.keys import KeyStoreError


def _shutdown(signum, frame):
    print("\n[System] Shutting down...")
    sys.exit(0)


def main():
    """Main entry point"""
    try:
        app = create_app()
    except (KeyStoreError, ConfigError) as e:
        # Refuse to run with credentials the cameras would not match
        print(f"[System] Startup aborted: {e}", file=sys.stderr)
        sys.exit(1)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    if Config.DEBUG:
        print("[Flask] WARNING: Debug mode is ENABLED (not for production!)")

    print(f"[Flask] Starting web server on http://{Config.HOST}:{Config.PORT}")
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG, threaded=True,
            use_reloader=False)


if __name__ == '__main__':
    main()
