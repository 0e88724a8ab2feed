"""Error taxonomy for the extraction and change-propagation pipeline.

None of these are fatal: decode errors degrade to empty structures, missing
sources make a tick a no-op, transport errors become a boolean failure, and
query validation errors become structured 4xx results.
"""

from collections.abc import Sequence


class BridgeError(Exception):
    """Base class for pipeline errors."""


class DecodeError(BridgeError):
    """Raised when a raw persisted string cannot be decoded."""


class MissingSourceError(BridgeError):
    """Raised when no active run data is available to read."""


class TransportError(BridgeError):
    """Raised when a push to the remote collector fails."""


class QueryValidationError(BridgeError):
    """Base for query errors that map to a structured 4xx result."""

    status_code: int = 400


class InvalidEndpointError(QueryValidationError):
    status_code = 400

    def __init__(self, endpoint: str, available: Sequence[str]) -> None:
        super().__init__(f"Invalid endpoint: {endpoint!r}")
        self.endpoint = endpoint
        self.available = list(available)


class RunNotFoundError(QueryValidationError):
    status_code = 404

    def __init__(self, game_id: str | None, available: Sequence[str]) -> None:
        super().__init__(f"Game not found: {game_id!r}")
        self.game_id = game_id
        self.available = list(available)
