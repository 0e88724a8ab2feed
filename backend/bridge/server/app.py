"""Starlette app serving tracker views to overlays and accepting pushed tracker data."""

from __future__ import annotations

import json
from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from bridge.logic.enums import DataSourceKind
from bridge.logic.exceptions import MissingSourceError
from bridge.logic.router import QueryRouter, missing_payload_result
from bridge.server.fallback import FALLBACK_GAME_DATA, FALLBACK_SAVES_DATA
from bridge.server.settings import BridgeServerSettings
from bridge.server.types import UpdateDataRequest
from bridge.session.realtime import RealtimeDataCell
from bridge.session.source import RawGameData
from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request

GAME_DATA_HEADER = "x-game-data"
SAVES_DATA_HEADER = "x-saves-data"


class _BodyTooLargeError(Exception):
    pass


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def status(request: Request) -> JSONResponse:
    realtime: RealtimeDataCell = request.app.state.realtime
    settings: BridgeServerSettings = request.app.state.settings
    if realtime.has_data:
        source = DataSourceKind.REAL
    elif settings.fallback_data:
        source = DataSourceKind.MOCK
    else:
        source = DataSourceKind.NONE
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "port": settings.port,
            "dataSource": source,
            "lastUpdate": realtime.last_update,
        },
    )


def _resolve_payload(request: Request) -> tuple[RawGameData, DataSourceKind] | None:
    """Pick the raw payload for a query: request headers, then pushed data, then demo data."""
    game_header = request.headers.get(GAME_DATA_HEADER)
    saves_header = request.headers.get(SAVES_DATA_HEADER)
    if game_header or saves_header:
        if not (game_header and saves_header):
            return None
        return RawGameData(saves_data=saves_header, game_data=game_header), DataSourceKind.REQUEST

    realtime: RealtimeDataCell = request.app.state.realtime
    try:
        return realtime.read(), DataSourceKind.REAL
    except MissingSourceError:
        pass

    settings: BridgeServerSettings = request.app.state.settings
    if settings.fallback_data:
        return RawGameData(saves_data=FALLBACK_SAVES_DATA, game_data=FALLBACK_GAME_DATA), DataSourceKind.MOCK
    return None


async def external_query(request: Request) -> JSONResponse:
    router: QueryRouter = request.app.state.router
    realtime: RealtimeDataCell = request.app.state.realtime
    endpoint = request.query_params.get("endpoint") or None
    game_id = request.query_params.get("gameId") or None

    resolved = _resolve_payload(request)
    if resolved is None:
        result = missing_payload_result()
        return JSONResponse(result.body, status_code=result.status_code)
    raw, source = resolved

    try:
        result = router.route(endpoint, saves_data=raw.saves_data, game_data=raw.game_data, game_id=game_id)
    except Exception as e:
        logger.exception("external query failed", endpoint=endpoint, game_id=game_id)
        return JSONResponse(
            {"error": "Internal server error", "message": str(e)},
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        )

    if not result.ok:
        return JSONResponse(result.body, status_code=result.status_code)
    last_update = realtime.last_update if source == DataSourceKind.REAL else None
    return JSONResponse({**result.body, "_meta": {"dataSource": source, "lastUpdate": last_update}})


async def _read_request_body(request: Request, limit: int) -> bytes:
    """Read the request body, raising _BodyTooLargeError once it exceeds limit bytes."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise _BodyTooLargeError
        chunks.append(chunk)
    return b"".join(chunks)


async def update_data(request: Request) -> JSONResponse:
    realtime: RealtimeDataCell = request.app.state.realtime
    settings: BridgeServerSettings = request.app.state.settings

    try:
        raw_body = await _read_request_body(request, settings.max_body_bytes)
    except _BodyTooLargeError:
        return JSONResponse({"error": "Request body too large"}, status_code=HTTPStatus.REQUEST_ENTITY_TOO_LARGE)

    try:
        payload = UpdateDataRequest.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError):
        logger.warning("rejected malformed update payload", size=len(raw_body))
        return JSONResponse({"error": "Invalid JSON data"}, status_code=HTTPStatus.BAD_REQUEST)

    realtime.update(game_data=payload.game_data, saves_data=payload.saves_data)
    return JSONResponse({"success": True, "timestamp": realtime.last_update})


def create_app(
    settings: BridgeServerSettings | None = None,
    realtime: RealtimeDataCell | None = None,
    router: QueryRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = BridgeServerSettings()
    if realtime is None:
        realtime = RealtimeDataCell()
    if router is None:
        router = QueryRouter()

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/api/external", external_query, methods=["GET"]),
        Route("/api/update-data", update_data, methods=["POST"]),
    ]

    static_dir = Path(settings.static_dir).resolve()
    if static_dir.is_dir():
        routes.append(Mount("/examples", app=StaticFiles(directory=str(static_dir)), name="examples"))
    else:
        logger.info("static directory not found, /examples/ will not be served", path=str(static_dir))

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", GAME_DATA_HEADER, SAVES_DATA_HEADER],
    )
    app.state.settings = settings
    app.state.realtime = realtime
    app.state.router = router

    logger.info(
        "bridge server ready",
        port=settings.port,
        fallback_data=settings.fallback_data,
        has_data=realtime.has_data,
    )
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (uvicorn --factory bridge.server.app:get_app)."""
    settings = BridgeServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
