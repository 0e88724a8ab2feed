"""Raw data sources for the tracker's persisted state.

The tracker keeps its state in browser localStorage under fixed keys. A
source hands back the two raw strings untouched; it never parses them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from bridge.logic.exceptions import MissingSourceError

if TYPE_CHECKING:
    from collections.abc import Mapping


class StorageKeys:
    """localStorage key names written by the tracker application."""

    ACTIVE = "nuzlocke"
    SAVES = "nuzlocke.saves"

    @staticmethod
    def game(game_id: str) -> str:
        return f"nuzlocke.{game_id}"


@dataclass(frozen=True)
class RawGameData:
    """The two raw strings for one observation, plus the active run id if known."""

    saves_data: str
    game_data: str
    active_game_id: str | None = None


class GameDataSource(Protocol):
    """Protocol for reading the current raw tracker state."""

    def read(self) -> RawGameData:
        """Return the current raw state. Raises MissingSourceError if there is none."""
        ...


class LocalStorageSource:
    """Reads raw state from a localStorage-like key/value mapping."""

    def __init__(self, storage: Mapping[str, str]) -> None:
        self._storage = storage

    def read(self) -> RawGameData:
        active_game_id = self._storage.get(StorageKeys.ACTIVE)
        saves_data = self._storage.get(StorageKeys.SAVES)
        game_data = self._storage.get(StorageKeys.game(active_game_id)) if active_game_id else None
        if not active_game_id or not saves_data or not game_data:
            raise MissingSourceError("no active Nuzlocke run in storage")
        return RawGameData(saves_data=saves_data, game_data=game_data, active_game_id=active_game_id)


class LocalStorageFileSource:
    """Reads raw state from a JSON export of browser localStorage.

    The file is re-read on every call so edits (or re-exports) are picked up
    by the next observation.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> RawGameData:
        try:
            storage = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise MissingSourceError(f"cannot read storage export {self._path}: {e}") from e
        if not isinstance(storage, dict):
            raise MissingSourceError(f"storage export {self._path} must be a JSON object")
        entries = {key: value for key, value in storage.items() if isinstance(value, str)}
        return LocalStorageSource(entries).read()
