"""Push a browser localStorage export to a bridge server.

The export is a JSON object of localStorage keys to string values, as
written by the tracker (``nuzlocke``, ``nuzlocke.saves``, ``nuzlocke.<id>``).
The file is re-read on every tick, so re-exporting it is enough to sync.

Usage:
    uv run python bin/sync.py storage.json
    uv run python bin/sync.py storage.json --once
    uv run python bin/sync.py storage.json --server http://overlay-pc:5174
"""

import argparse
import asyncio
import contextlib
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from bridge.session.settings import BridgeClientSettings
from bridge.session.source import LocalStorageFileSource
from bridge.session.sync import SyncClient
from shared.logging import setup_logging


async def run(storage_file: Path, settings: BridgeClientSettings, *, once: bool) -> int:
    client = SyncClient(LocalStorageFileSource(storage_file), timeout_seconds=settings.request_timeout_seconds)
    if once:
        return 0 if await client.push(settings.server_url) else 1

    client.start_auto_sync(settings.server_url, settings.sync_interval_ms)
    try:
        await asyncio.Event().wait()
    finally:
        await client.stop_auto_sync()
    return 0


def main() -> None:
    settings = BridgeClientSettings()
    parser = argparse.ArgumentParser(description="Sync tracker data to a bridge server.")
    parser.add_argument("storage_file", nargs="?", type=Path, default=settings.storage_file)
    parser.add_argument("--server", default=settings.server_url, help="bridge server base URL")
    parser.add_argument("--once", action="store_true", help="push once and exit")
    args = parser.parse_args()

    if args.storage_file is None:
        parser.error("storage_file is required (or set BRIDGE_CLIENT_STORAGE_FILE)")

    setup_logging()
    settings = settings.model_copy(update={"server_url": args.server})
    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(run(args.storage_file, settings, once=args.once)))


if __name__ == "__main__":
    main()
