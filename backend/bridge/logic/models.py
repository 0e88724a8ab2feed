"""Decoded records produced by one extraction pass.

All models are frozen: a snapshot is rebuilt from the raw strings on every
observation and never mutated in place. Payload helpers produce the camelCase
JSON shapes overlay consumers read.
"""

from typing import Any

from pydantic import BaseModel, Field

from bridge.logic.enums import NuzlockeStatus


class RunRecord(BaseModel, frozen=True):
    """One saved run from the save index."""

    id: str
    created: str
    updated: str | None = None  # absent when the run was never resumed
    name: str
    game: str
    settings: str
    attempts: int = Field(default=1, ge=1)


class SkippedEntry(BaseModel, frozen=True):
    """Diagnostic for a save index entry that could not be used."""

    position: int  # zero-based index among non-empty comma segments
    raw: str
    reason: str


class SaveIndex(BaseModel, frozen=True):
    """Parsed save index: runs in index order plus per-entry diagnostics."""

    runs: dict[str, RunRecord] = Field(default_factory=dict)
    skipped: tuple[SkippedEntry, ...] = ()

    @property
    def run_ids(self) -> list[str]:
        return list(self.runs)

    @property
    def first_run_id(self) -> str | None:
        return next(iter(self.runs), None)


class CreatureRecord(BaseModel, frozen=True):
    """One creature occupying a location slot.

    The location id doubles as the creature's identity within a run.
    """

    location_id: str
    species: str | None = None
    display_name: str | None = None
    level: int = Field(default=1, ge=1)
    status_code: int | None = None
    nature: str | None = None
    ability: str | None = None
    moves: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    stats: dict[str, int] = Field(default_factory=dict)
    nickname: str | None = None
    death: dict[str, Any] | None = None  # verbatim tracker death record

    @property
    def is_dead(self) -> bool:
        return self.status_code == NuzlockeStatus.DEAD

    def to_payload(self, *, include_death: bool = False) -> dict[str, Any]:
        """Render the wire shape; optional fields are omitted when unset."""
        payload: dict[str, Any] = {
            "locationId": self.location_id,
            "pokemon": self.species,
            "name": self.display_name or self.species,
            "level": self.level,
            "status": self.status_code if self.status_code is not None else int(NuzlockeStatus.CAPTURED),
        }
        for key, value in (("nature", self.nature), ("ability", self.ability)):
            if value is not None:
                payload[key] = value
        payload["moves"] = list(self.moves)
        payload["types"] = list(self.types)
        payload["stats"] = dict(self.stats)
        if self.nickname is not None:
            payload["nickname"] = self.nickname
        if include_death:
            payload["death"] = self.death
        return payload


class BossEncounterRecord(BaseModel, frozen=True):
    """A boss fight (gym leader, elite, rival) with its opposing team stubs."""

    id: Any = None
    name: Any = None
    type: Any = None
    group: Any = None
    team: tuple[dict[str, Any], ...] = ()

    def to_payload(self) -> dict[str, Any]:
        payload = {"id": self.id, "name": self.name, "type": self.type, "group": self.group}
        payload = {k: v for k, v in payload.items() if v is not None}
        payload["team"] = [dict(stub) for stub in self.team]
        return payload


class GameSnapshot(BaseModel, frozen=True):
    """Fully decoded state of one run at one observation instant."""

    locations: dict[str, CreatureRecord] = Field(default_factory=dict)  # insertion order preserved
    team_order: tuple[str, ...] = ()
    boss_encounters: tuple[BossEncounterRecord, ...] = ()
    starter: str = "unknown"

    @property
    def is_empty(self) -> bool:
        return not self.locations and not self.team_order and not self.boss_encounters


class RunSummary(BaseModel, frozen=True):
    """Counts and run metadata derived from a snapshot and its run record."""

    game_id: str
    game_name: str
    game_version: str
    created: str
    updated: str | None = None
    attempts: int = 1
    starter: str = "unknown"
    team_count: int = 0
    box_count: int = 0
    dead_count: int = 0
    total_caught: int = 0

    def metadata_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "gameId": self.game_id,
            "gameName": self.game_name,
            "gameVersion": self.game_version,
            "created": self.created,
        }
        if self.updated is not None:
            payload["updated"] = self.updated
        payload["attempts"] = self.attempts
        payload["starter"] = self.starter
        return payload

    def stats_payload(self) -> dict[str, int]:
        return {
            "teamCount": self.team_count,
            "boxCount": self.box_count,
            "deadCount": self.dead_count,
            "totalCaught": self.total_caught,
        }
