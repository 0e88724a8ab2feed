"""Status codes and query endpoint tags shared across the pipeline.

Status codes are written by the tracker application into every location
record and are the only key used to partition creatures into views.
"""

from enum import IntEnum, StrEnum


class NuzlockeStatus(IntEnum):
    """Integer status codes stored in tracker location records."""

    CAPTURED = 1
    RECEIVED = 2
    TRADED = 3
    MISSED = 4
    DEAD = 5
    SHINY = 6
    TRASH = 7


# Statuses of creatures the player still owns (team candidates and box).
AVAILABLE_STATUSES = frozenset(
    {NuzlockeStatus.CAPTURED, NuzlockeStatus.RECEIVED, NuzlockeStatus.TRADED, NuzlockeStatus.SHINY},
)

# Statuses that never count as owned.
UNAVAILABLE_STATUSES = frozenset({NuzlockeStatus.MISSED, NuzlockeStatus.DEAD, NuzlockeStatus.TRASH})


class QueryEndpoint(StrEnum):
    STATUS = "status"
    TEAM = "team"
    BOX = "box"
    DEAD = "dead"
    BOSSES = "bosses"
    FULL = "full"


AVAILABLE_ENDPOINTS: tuple[str, ...] = tuple(e.value for e in QueryEndpoint)


class EmitterEvent(StrEnum):
    """Event kinds published by the polling emitter."""

    DATA_UPDATE = "data_update"
    TEAM_UPDATE = "team_update"
    STATS_UPDATE = "stats_update"
    ERROR = "error"


class DataSourceKind(StrEnum):
    """Where the server found the raw payload it answered from."""

    REQUEST = "request"
    REAL = "real"
    MOCK = "mock"
    NONE = "none"
