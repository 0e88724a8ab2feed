"""Watch a browser localStorage export and log change events.

Useful for checking what an overlay would receive without running a server.

Usage:
    uv run python bin/watch.py storage.json
    uv run python bin/watch.py storage.json --interval 500
"""

import argparse
import asyncio
import contextlib
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

import structlog

from bridge.logic.enums import EmitterEvent
from bridge.session.emitter import PollingEmitter
from bridge.session.settings import BridgeClientSettings
from bridge.session.source import LocalStorageFileSource
from shared.logging import setup_logging

logger = structlog.get_logger()


def _log_team(team: list[dict]) -> None:
    logger.info("team updated", team=[member["name"] for member in team])


def _log_stats(stats: dict) -> None:
    logger.info("stats updated", **stats)


def _log_error(error: dict) -> None:
    logger.warning("watch error", **error)


async def run(storage_file: Path, interval_ms: int) -> None:
    emitter = PollingEmitter(LocalStorageFileSource(storage_file))
    emitter.subscribe(EmitterEvent.TEAM_UPDATE, _log_team)
    emitter.subscribe(EmitterEvent.STATS_UPDATE, _log_stats)
    emitter.subscribe(EmitterEvent.ERROR, _log_error)

    emitter.start_polling(interval_ms)
    try:
        await asyncio.Event().wait()
    finally:
        await emitter.stop_polling()


def main() -> None:
    settings = BridgeClientSettings()
    parser = argparse.ArgumentParser(description="Log tracker change events from a localStorage export.")
    parser.add_argument("storage_file", nargs="?", type=Path, default=settings.storage_file)
    parser.add_argument("--interval", type=int, default=settings.poll_interval_ms, help="poll interval in ms")
    args = parser.parse_args()

    if args.storage_file is None:
        parser.error("storage_file is required (or set BRIDGE_CLIENT_STORAGE_FILE)")

    setup_logging()
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run(args.storage_file, args.interval))


if __name__ == "__main__":
    main()
