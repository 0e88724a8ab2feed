"""Decode the tracker's per-run state blob into a GameSnapshot.

The blob is a JSON object. Keys starting with ``__`` hold run-wide aggregates
(``__team`` ordered team location ids, ``__teams`` boss encounters,
``__starter``); every other key whose value is an object is a location record.

Decoding is lenient field by field: values of the wrong type fall back to the
same defaults an absent field would get, so the views built on top are total.
"""

import json
from typing import Any

import structlog

from bridge.logic.exceptions import DecodeError
from bridge.logic.models import BossEncounterRecord, CreatureRecord, GameSnapshot

logger = structlog.get_logger()

TEAM_KEY = "__team"
BOSSES_KEY = "__teams"
STARTER_KEY = "__starter"
AGGREGATE_PREFIX = "__"
UNKNOWN_STARTER = "unknown"

EMPTY_SNAPSHOT = GameSnapshot()


def _str_or_none(value: Any) -> str | None:  # noqa: ANN401
    return value if isinstance(value, str) and value else None


def _int_or_none(value: Any) -> int | None:  # noqa: ANN401
    # bool is an int subclass; JSON true/false is never a valid code or level
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def _str_tuple(value: Any) -> tuple[str, ...]:  # noqa: ANN401
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _stat_block(value: Any) -> dict[str, int]:  # noqa: ANN401
    if not isinstance(value, dict):
        return {}
    stats: dict[str, int] = {}
    for name, raw in value.items():
        number = _int_or_none(raw)
        if number is not None:
            stats[str(name)] = number
    return stats


def decode_creature(location_id: str, raw: dict[str, Any]) -> CreatureRecord:
    """Build a CreatureRecord from one raw location entry."""
    species = _str_or_none(raw.get("pokemon"))
    level = _int_or_none(raw.get("level"))
    death = raw.get("death")
    return CreatureRecord(
        location_id=location_id,
        species=species,
        display_name=_str_or_none(raw.get("name")) or species,
        level=level if level is not None and level >= 1 else 1,
        status_code=_int_or_none(raw.get("status")),
        nature=_str_or_none(raw.get("nature")),
        ability=_str_or_none(raw.get("ability")),
        moves=_str_tuple(raw.get("moves")),
        types=_str_tuple(raw.get("types")),
        stats=_stat_block(raw.get("stats")),
        nickname=_str_or_none(raw.get("nickname")),
        death=death if isinstance(death, dict) else None,
    )


def decode_boss(raw: dict[str, Any]) -> BossEncounterRecord:
    team = raw.get("team")
    stubs = tuple(stub for stub in team if isinstance(stub, dict)) if isinstance(team, list) else ()
    return BossEncounterRecord(
        id=raw.get("id"),
        name=raw.get("name"),
        type=raw.get("type"),
        group=raw.get("group"),
        team=stubs,
    )


def decode_game_state(raw: str) -> GameSnapshot:
    """Decode a raw run-state string.

    Raises DecodeError if the string is not JSON or not a JSON object.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"run state is not valid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError("run state is nested too deeply to decode") from e
    if not isinstance(data, dict):
        raise DecodeError(f"run state must be a JSON object, got {type(data).__name__}")

    locations = {
        key: decode_creature(key, value)
        for key, value in data.items()
        if not key.startswith(AGGREGATE_PREFIX) and isinstance(value, dict)
    }

    raw_bosses = data.get(BOSSES_KEY)
    bosses = (
        tuple(decode_boss(boss) for boss in raw_bosses if isinstance(boss, dict))
        if isinstance(raw_bosses, list)
        else ()
    )

    return GameSnapshot(
        locations=locations,
        team_order=_str_tuple(data.get(TEAM_KEY)),
        boss_encounters=bosses,
        starter=_str_or_none(data.get(STARTER_KEY)) or UNKNOWN_STARTER,
    )


def read_game_data(raw: str | None) -> GameSnapshot:
    """Decode a raw run-state string, substituting the empty snapshot on failure.

    "No run yet" and "corrupted run" both yield the empty snapshot; the
    failure is only logged.
    """
    if not raw:
        return EMPTY_SNAPSHOT
    try:
        return decode_game_state(raw)
    except DecodeError as e:
        logger.warning("run state decode failed, using empty snapshot", error=str(e))
        return EMPTY_SNAPSHOT
