"""Polling emitter: observe the tracker state and publish change events.

Each tick reads the raw strings, fingerprints them, and only when the
fingerprint moved re-parses and publishes:

- ``data_update`` with the full payload,
- ``team_update`` with the team list,
- ``stats_update`` with the stats object.

A missing source is the normal "no active run yet" state and makes the tick a
silent no-op.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog

from bridge.logic.enums import EmitterEvent, QueryEndpoint
from bridge.logic.exceptions import MissingSourceError
from bridge.logic.fingerprint import ChangeDetector
from bridge.logic.router import QueryRouter
from bridge.session.events import EventBus

if TYPE_CHECKING:
    from collections.abc import Callable

    from bridge.session.events import EventCallback
    from bridge.session.source import GameDataSource, RawGameData

DEFAULT_POLL_INTERVAL_MS = 1000

logger = structlog.get_logger()


class PollingEmitter:
    """Single-task polling loop over a GameDataSource.

    The change detector is owned by the loop; nothing else writes to it.
    """

    def __init__(
        self,
        source: GameDataSource,
        *,
        router: QueryRouter | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._source = source
        self._router = router or QueryRouter()
        self._bus = bus or EventBus()
        self._detector = ChangeDetector()
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def subscribe(self, event: EmitterEvent, callback: EventCallback) -> Callable[[], None]:
        return self._bus.subscribe(event, callback)

    def unsubscribe(self, event: EmitterEvent, callback: EventCallback) -> None:
        self._bus.unsubscribe(event, callback)

    def start_polling(self, interval_ms: int = DEFAULT_POLL_INTERVAL_MS) -> None:
        """Start polling every interval_ms. No-op when already polling.

        The first observation runs as soon as the task is scheduled, so
        subscribers attached right after this call still get the initial state.
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop(interval_ms / 1000))
        logger.info("polling started", interval_ms=interval_ms)

    async def stop_polling(self) -> None:
        """Cancel the polling task. Safe to call when not polling."""
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._poll_task
        self._poll_task = None
        logger.info("polling stopped")

    def check_for_updates(self) -> bool:
        """Run one observation. Return True if change events were published."""
        try:
            raw = self._source.read()
        except MissingSourceError:
            return False
        return self._publish_if_changed(raw)

    def _publish_if_changed(self, raw: RawGameData) -> bool:
        if not self._detector.observe(raw.saves_data, raw.game_data):
            return False

        try:
            result = self._router.route(
                QueryEndpoint.FULL,
                saves_data=raw.saves_data,
                game_data=raw.game_data,
                game_id=raw.active_game_id,
            )
        except Exception as e:
            logger.exception("failed to extract views", fingerprint=self._detector.last_fingerprint)
            self._bus.emit(EmitterEvent.ERROR, {"error": "Internal error", "message": str(e)})
            return False

        if not result.ok:
            logger.warning("observation produced an error result", status_code=result.status_code)
            self._bus.emit(EmitterEvent.ERROR, result.body)
            return False

        logger.debug("state changed", fingerprint=self._detector.last_fingerprint)
        self._bus.emit(EmitterEvent.DATA_UPDATE, result.body)
        self._bus.emit(EmitterEvent.TEAM_UPDATE, result.body["team"])
        self._bus.emit(EmitterEvent.STATS_UPDATE, result.body["stats"])
        return True

    def get_current_data(self, endpoint: str = QueryEndpoint.FULL) -> dict[str, Any] | None:
        """Query the current state without touching change detection.

        Returns None when there is no active run, otherwise the response body
        (which may be a structured error).
        """
        try:
            raw = self._source.read()
        except MissingSourceError:
            return None
        result = self._router.route(
            endpoint,
            saves_data=raw.saves_data,
            game_data=raw.game_data,
            game_id=raw.active_game_id,
        )
        return result.body

    async def _poll_loop(self, interval_seconds: float) -> None:
        while True:
            try:
                # File-backed sources do blocking I/O; keep it off the event loop.
                raw = await asyncio.to_thread(self._source.read)
                self._publish_if_changed(raw)
            except MissingSourceError:
                pass
            except Exception:
                logger.exception("polling tick failed")
            await asyncio.sleep(interval_seconds)
