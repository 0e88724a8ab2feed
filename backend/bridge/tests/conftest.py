import pytest

from bridge.session.realtime import RealtimeDataCell
from bridge.session.source import LocalStorageSource
from bridge.tests.helpers.payloads import SAVES_DATA, sample_game_data


class MutableStorage(dict):
    """localStorage stand-in whose contents tests can change between ticks."""

    def load_run(self, game_id: str, saves_data: str, game_data: str) -> None:
        self["nuzlocke"] = game_id
        self["nuzlocke.saves"] = saves_data
        self[f"nuzlocke.{game_id}"] = game_data


@pytest.fixture
def game_data() -> str:
    return sample_game_data()


@pytest.fixture
def storage(game_data) -> MutableStorage:
    store = MutableStorage()
    store.load_run("abc", SAVES_DATA, game_data)
    return store


@pytest.fixture
def storage_source(storage) -> LocalStorageSource:
    return LocalStorageSource(storage)


@pytest.fixture
def realtime() -> RealtimeDataCell:
    return RealtimeDataCell()
