"""Map a query endpoint tag onto the derived views of one run.

The router works on the two raw strings and knows nothing about how they
arrived (request headers, pushed payload, demo data). Every request is a full
re-parse: nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

import structlog

from bridge.logic.enums import AVAILABLE_ENDPOINTS, QueryEndpoint
from bridge.logic.exceptions import InvalidEndpointError, RunNotFoundError
from bridge.logic.reader import read_game_data
from bridge.logic.saves import parse_saved_games
from bridge.logic.views import extract_bosses, extract_box, extract_dead, extract_team, summarize

if TYPE_CHECKING:
    from collections.abc import Callable

    from bridge.logic.models import GameSnapshot, RunSummary

logger = structlog.get_logger()

MISSING_PAYLOAD_ERROR = "Missing game data. Please provide x-game-data and x-saves-data headers."
MISSING_PAYLOAD_HELP = "These headers should contain the localStorage data for the active game."


@dataclass(frozen=True)
class QueryResult:
    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code == HTTPStatus.OK


def missing_payload_result() -> QueryResult:
    return QueryResult(
        status_code=HTTPStatus.BAD_REQUEST,
        body={"error": MISSING_PAYLOAD_ERROR, "help": MISSING_PAYLOAD_HELP},
    )


def _status_body(summary: RunSummary, _snapshot: GameSnapshot) -> dict[str, Any]:
    return {**summary.metadata_payload(), **summary.stats_payload()}


def _team_body(summary: RunSummary, snapshot: GameSnapshot) -> dict[str, Any]:
    return {"gameId": summary.game_id, "team": [r.to_payload() for r in extract_team(snapshot)]}


def _box_body(summary: RunSummary, snapshot: GameSnapshot) -> dict[str, Any]:
    return {"gameId": summary.game_id, "box": [r.to_payload() for r in extract_box(snapshot)]}


def _dead_body(summary: RunSummary, snapshot: GameSnapshot) -> dict[str, Any]:
    return {"gameId": summary.game_id, "dead": [r.to_payload(include_death=True) for r in extract_dead(snapshot)]}


def _bosses_body(summary: RunSummary, snapshot: GameSnapshot) -> dict[str, Any]:
    return {"gameId": summary.game_id, "bosses": [b.to_payload() for b in extract_bosses(snapshot)]}


def _full_body(summary: RunSummary, snapshot: GameSnapshot) -> dict[str, Any]:
    return {
        **summary.metadata_payload(),
        "team": [r.to_payload() for r in extract_team(snapshot)],
        "box": [r.to_payload() for r in extract_box(snapshot)],
        "dead": [r.to_payload(include_death=True) for r in extract_dead(snapshot)],
        "bosses": [b.to_payload() for b in extract_bosses(snapshot)],
        "stats": summary.stats_payload(),
    }


_BODY_BUILDERS: dict[QueryEndpoint, Callable[[RunSummary, GameSnapshot], dict[str, Any]]] = {
    QueryEndpoint.STATUS: _status_body,
    QueryEndpoint.TEAM: _team_body,
    QueryEndpoint.BOX: _box_body,
    QueryEndpoint.DEAD: _dead_body,
    QueryEndpoint.BOSSES: _bosses_body,
    QueryEndpoint.FULL: _full_body,
}


class QueryRouter:
    """Resolve (endpoint, run id, raw payload) into a JSON-ready result."""

    def resolve(
        self,
        endpoint: str | None,
        *,
        saves_data: str,
        game_data: str,
        game_id: str | None = None,
    ) -> dict[str, Any]:
        """Build the response body for a query.

        Raises InvalidEndpointError for an unknown tag (checked before the run
        lookup) and RunNotFoundError when the run id is not in the save index.
        """
        tag = endpoint or QueryEndpoint.STATUS
        if tag not in AVAILABLE_ENDPOINTS:
            raise InvalidEndpointError(tag, AVAILABLE_ENDPOINTS)

        index = parse_saved_games(saves_data)
        resolved_id = game_id or index.first_run_id
        run = index.runs.get(resolved_id) if resolved_id is not None else None
        if run is None:
            raise RunNotFoundError(resolved_id, index.run_ids)

        snapshot = read_game_data(game_data)
        summary = summarize(snapshot, run)
        return _BODY_BUILDERS[QueryEndpoint(tag)](summary, snapshot)

    def route(
        self,
        endpoint: str | None,
        *,
        saves_data: str,
        game_data: str,
        game_id: str | None = None,
    ) -> QueryResult:
        """Like resolve(), with validation errors turned into structured 4xx results."""
        try:
            body = self.resolve(endpoint, saves_data=saves_data, game_data=game_data, game_id=game_id)
        except InvalidEndpointError as e:
            logger.info("invalid endpoint requested", endpoint=e.endpoint)
            return QueryResult(
                status_code=e.status_code,
                body={"error": "Invalid endpoint", "availableEndpoints": e.available},
            )
        except RunNotFoundError as e:
            logger.info("run not found", game_id=e.game_id, available=e.available)
            return QueryResult(
                status_code=e.status_code,
                body={"error": "Game not found", "availableGames": e.available},
            )
        return QueryResult(status_code=HTTPStatus.OK, body=body)
