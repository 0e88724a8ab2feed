"""Run the bridge HTTP server.

Configuration comes from BRIDGE_* environment variables (see
bridge.server.settings.BridgeServerSettings); --host and --port override them.

Usage:
    uv run python bin/serve.py
    uv run python bin/serve.py --port 8080
"""

import argparse
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

import uvicorn

from bridge.logic.enums import AVAILABLE_ENDPOINTS
from bridge.server.app import create_app
from bridge.server.settings import BridgeServerSettings
from shared.logging import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve Nuzlocke tracker data to overlay tools.")
    parser.add_argument("--host", help="bind address (default: BRIDGE_HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, help="listen port (default: BRIDGE_PORT or 5174)")
    args = parser.parse_args()

    overrides = {key: value for key, value in (("host", args.host), ("port", args.port)) if value is not None}
    settings = BridgeServerSettings(**overrides)
    setup_logging(log_dir=settings.log_dir)

    app = create_app(settings=settings)
    print(f"Bridge server listening on http://{settings.host}:{settings.port}")
    print(f"  Query:  GET  /api/external?endpoint=<{'|'.join(AVAILABLE_ENDPOINTS)}>")
    print("  Push:   POST /api/update-data")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
