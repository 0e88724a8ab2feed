"""Single-writer cell holding the latest payload pushed by a browser bridge."""

from datetime import UTC, datetime

import structlog

from bridge.logic.exceptions import MissingSourceError
from bridge.logic.fingerprint import ChangeDetector
from bridge.session.source import RawGameData

logger = structlog.get_logger()


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RealtimeDataCell:
    """Latest accepted (run state, save index) pair.

    Owned by the push handler, which is its only writer; query handlers read
    it as a GameDataSource. Only the latest payload is kept.
    """

    def __init__(self, game_data: str | None = None, saves_data: str | None = None) -> None:
        self._detector = ChangeDetector()
        self._game_data: str | None = None
        self._saves_data: str | None = None
        self._last_update: str | None = None
        if game_data is not None and saves_data is not None:
            self.update(game_data=game_data, saves_data=saves_data)

    @property
    def has_data(self) -> bool:
        return self._game_data is not None and self._saves_data is not None

    @property
    def last_update(self) -> str | None:
        return self._last_update

    @property
    def fingerprint(self) -> str | None:
        return self._detector.last_fingerprint

    def update(self, *, game_data: str, saves_data: str) -> bool:
        """Store a pushed payload. Return False (and keep state) if it is unchanged."""
        if not self._detector.observe(saves_data, game_data):
            logger.debug("pushed data unchanged", fingerprint=self.fingerprint)
            return False
        self._game_data = game_data
        self._saves_data = saves_data
        self._last_update = utc_timestamp()
        logger.info("pushed data refreshed", fingerprint=self.fingerprint, last_update=self._last_update)
        return True

    def read(self) -> RawGameData:
        if self._game_data is None or self._saves_data is None:
            raise MissingSourceError("no data has been pushed yet")
        return RawGameData(saves_data=self._saves_data, game_data=self._game_data)
