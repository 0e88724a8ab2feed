"""Push the raw tracker state to a remote collector server.

The auto-sync loop keeps its own "last pushed" fingerprint, independent from
any emitter, and makes no network call while the raw payload is unchanged.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import httpx
import structlog

from bridge.logic.exceptions import MissingSourceError, TransportError
from bridge.logic.fingerprint import fingerprint, has_changed

if TYPE_CHECKING:
    from bridge.session.source import GameDataSource, RawGameData

DEFAULT_SERVER_URL = "http://localhost:5174"
DEFAULT_SYNC_INTERVAL_MS = 2000
DEFAULT_TIMEOUT_SECONDS = 5.0
UPDATE_DATA_PATH = "/api/update-data"

logger = structlog.get_logger()


class SyncClient:
    """Push raw state to ``<server_url>/api/update-data``.

    Failures never raise to the caller: push() returns False and the failure
    is logged. The auto-sync loop retries only on its next natural tick.
    """

    def __init__(
        self,
        source: GameDataSource,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._source = source
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._last_pushed_fingerprint: str | None = None
        self._sync_task: asyncio.Task[None] | None = None
        self._pending_pushes: set[asyncio.Task[bool]] = set()

    @property
    def is_syncing(self) -> bool:
        return self._sync_task is not None and not self._sync_task.done()

    @property
    def last_pushed_fingerprint(self) -> str | None:
        return self._last_pushed_fingerprint

    async def push(self, server_url: str = DEFAULT_SERVER_URL) -> bool:
        """Read the current state and push it once. Return True on an acknowledged push."""
        try:
            raw = self._source.read()
        except MissingSourceError as e:
            logger.warning("no tracker data to push, make sure a run is active", reason=str(e))
            return False
        return await self._push_raw(server_url, raw)

    def start_auto_sync(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        interval_ms: int = DEFAULT_SYNC_INTERVAL_MS,
    ) -> None:
        """Start the fingerprint-gated sync loop. No-op when already syncing."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        if self.is_syncing:
            return
        self._sync_task = asyncio.create_task(self._sync_loop(server_url, interval_ms / 1000))
        logger.info("auto-sync started", server_url=server_url, interval_ms=interval_ms)

    async def stop_auto_sync(self) -> None:
        """Cancel the sync loop. Pushes already in flight are left to finish."""
        if self._sync_task is None:
            return
        self._sync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sync_task
        self._sync_task = None
        logger.info("auto-sync stopped")

    def sync_tick(self, server_url: str = DEFAULT_SERVER_URL) -> asyncio.Task[bool] | None:
        """Run one auto-sync observation.

        Returns the launched push task, or None when there was nothing to
        push (no active run, or payload identical to the last pushed one).
        The push is not awaited so a slow server never delays the timer.
        """
        try:
            raw = self._source.read()
        except MissingSourceError:
            return None

        current = fingerprint(raw.saves_data, raw.game_data)
        if not has_changed(self._last_pushed_fingerprint, current):
            return None

        self._last_pushed_fingerprint = current
        task = asyncio.create_task(self._push_tracked(server_url, raw, current))
        self._pending_pushes.add(task)
        task.add_done_callback(self._pending_pushes.discard)
        return task

    async def _sync_loop(self, server_url: str, interval_seconds: float) -> None:
        while True:
            try:
                self.sync_tick(server_url)
            except Exception:
                logger.exception("sync tick failed")
            await asyncio.sleep(interval_seconds)

    async def _push_tracked(self, server_url: str, raw: RawGameData, pushed_fingerprint: str) -> bool:
        ok = await self._push_raw(server_url, raw)
        # Forget a failed payload so the next tick retries it, unless a newer
        # payload has been launched meanwhile.
        if not ok and self._last_pushed_fingerprint == pushed_fingerprint:
            self._last_pushed_fingerprint = None
        return ok

    async def _push_raw(self, server_url: str, raw: RawGameData) -> bool:
        try:
            timestamp = await self._post(server_url, raw)
        except TransportError as e:
            logger.warning("push to collector failed", server_url=server_url, error=str(e))
            return False
        logger.info("data synced to collector", server_url=server_url, timestamp=timestamp)
        return True

    async def _post(self, server_url: str, raw: RawGameData) -> str | None:
        """POST the payload and validate the acknowledgement. Raises TransportError."""
        url = f"{server_url.rstrip('/')}{UPDATE_DATA_PATH}"
        body = {"gameData": raw.game_data, "savesData": raw.saves_data}
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"request to {url} failed: {e}") from e

        if not response.is_success:
            raise TransportError(f"server responded with {response.status_code}: {response.reason_phrase}")
        try:
            ack = response.json()
        except ValueError as e:
            raise TransportError("acknowledgement is not valid JSON") from e
        if not isinstance(ack, dict) or ack.get("success") is not True:
            raise TransportError(f"unexpected acknowledgement: {ack!r}")
        timestamp = ack.get("timestamp")
        return timestamp if isinstance(timestamp, str) else None
