import json

import pytest
from starlette.testclient import TestClient

from bridge.server.app import create_app
from bridge.server.settings import BridgeServerSettings
from bridge.tests.helpers.payloads import SAVES_DATA


def _settings(tmp_path, **overrides):
    overrides.setdefault("static_dir", str(tmp_path / "no-static"))
    return BridgeServerSettings(**overrides)


@pytest.fixture
def client(tmp_path, realtime):
    app = create_app(settings=_settings(tmp_path), realtime=realtime)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def bare_client(tmp_path):
    """Client for a server with the demo run disabled."""
    app = create_app(settings=_settings(tmp_path, fallback_data=False))
    with TestClient(app) as test_client:
        yield test_client


def _headers(game_data, saves_data=SAVES_DATA):
    return {"x-game-data": game_data, "x-saves-data": saves_data}


class TestHealthAndStatus:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert {"version", "commit"} <= response.json().keys()

    def test_status_reports_mock_before_push(self, client):
        body = client.get("/status").json()

        assert body["dataSource"] == "mock"
        assert body["lastUpdate"] is None
        assert body["port"] == 5174

    def test_status_reports_real_after_push(self, client, game_data):
        client.post("/api/update-data", json={"gameData": game_data, "savesData": SAVES_DATA})

        body = client.get("/status").json()

        assert body["dataSource"] == "real"
        assert body["lastUpdate"] is not None

    def test_status_reports_none_without_fallback(self, bare_client):
        assert bare_client.get("/status").json()["dataSource"] == "none"


class TestExternalQuery:
    def test_header_payload_takes_priority(self, client, realtime, game_data):
        realtime.update(game_data="{}", saves_data="zzz|1|Pushed|ruby|cfg")

        response = client.get("/api/external", params={"endpoint": "team"}, headers=_headers(game_data))

        assert response.status_code == 200
        body = response.json()
        assert body["gameId"] == "abc"
        assert [member["pokemon"] for member in body["team"]] == ["blaziken", "swellow"]
        assert body["_meta"] == {"dataSource": "request", "lastUpdate": None}

    def test_pushed_data_used_without_headers(self, client, realtime, game_data):
        realtime.update(game_data=game_data, saves_data=SAVES_DATA)

        body = client.get("/api/external", params={"endpoint": "dead"}).json()

        assert [member["pokemon"] for member in body["dead"]] == ["gardevoir"]
        assert body["_meta"]["dataSource"] == "real"
        assert body["_meta"]["lastUpdate"] == realtime.last_update

    def test_overly_nested_pushed_data_gives_empty_views(self, client, realtime):
        realtime.update(game_data='{"a":' + "[" * 100_000 + "]" * 100_000 + "}", saves_data=SAVES_DATA)

        response = client.get("/api/external", params={"endpoint": "full"})

        assert response.status_code == 200
        assert response.json()["team"] == []
        assert response.json()["starter"] == "unknown"

    def test_demo_run_served_before_any_push(self, client):
        body = client.get("/api/external", params={"endpoint": "full"}).json()

        assert body["gameName"] == "My Emerald Nuzlocke"
        assert [member["pokemon"] for member in body["team"]] == ["blaziken", "swellow"]
        assert [member["pokemon"] for member in body["dead"]] == ["gardevoir"]
        assert body["_meta"]["dataSource"] == "mock"

    def test_default_endpoint_is_status(self, client, game_data):
        body = client.get("/api/external", headers=_headers(game_data)).json()

        assert body["teamCount"] == 3
        assert "team" not in body

    def test_game_id_selects_run(self, client, game_data):
        body = client.get("/api/external", params={"gameId": "def"}, headers=_headers(game_data)).json()

        assert body["gameName"] == "Other Run"

    def test_missing_payload_is_400(self, bare_client):
        response = bare_client.get("/api/external")

        assert response.status_code == 400
        assert "x-game-data" in response.json()["error"]
        assert "help" in response.json()

    def test_single_header_is_400(self, client, game_data):
        response = client.get("/api/external", headers={"x-game-data": game_data})

        assert response.status_code == 400

    def test_invalid_endpoint_is_400(self, client, game_data):
        response = client.get("/api/external", params={"endpoint": "bogus"}, headers=_headers(game_data))

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid endpoint",
            "availableEndpoints": ["status", "team", "box", "dead", "bosses", "full"],
        }

    def test_unknown_game_is_404(self, client, game_data):
        response = client.get("/api/external", params={"gameId": "nope"}, headers=_headers(game_data))

        assert response.status_code == 404
        assert response.json() == {"error": "Game not found", "availableGames": ["abc", "def"]}

    def test_unexpected_failure_is_500(self, client, game_data, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("router bug")

        monkeypatch.setattr(client.app.state.router, "route", explode)

        response = client.get("/api/external", headers=_headers(game_data))

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "router bug"}


class TestUpdateData:
    def test_accepts_push(self, client, realtime, game_data):
        response = client.post("/api/update-data", json={"gameData": game_data, "savesData": SAVES_DATA})

        assert response.status_code == 200
        assert response.json() == {"success": True, "timestamp": realtime.last_update}
        assert realtime.read().game_data == game_data

    def test_identical_push_keeps_timestamp(self, client, realtime, game_data):
        payload = {"gameData": game_data, "savesData": SAVES_DATA}
        first = client.post("/api/update-data", json=payload).json()["timestamp"]

        second = client.post("/api/update-data", json=payload).json()["timestamp"]

        assert first == second

    @pytest.mark.parametrize(
        "content",
        [b"{not json", b"[]", json.dumps({"gameData": "{}"}).encode(), json.dumps({"gameData": 1, "savesData": 2}).encode()],
        ids=["invalid-json", "not-an-object", "missing-field", "wrong-types"],
    )
    def test_malformed_body_is_400(self, client, realtime, content):
        response = client.post("/api/update-data", content=content, headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON data"}
        assert not realtime.has_data

    def test_oversized_body_is_413(self, tmp_path, realtime):
        app = create_app(settings=_settings(tmp_path, max_body_bytes=1024), realtime=realtime)
        payload = {"gameData": "x" * 2048, "savesData": SAVES_DATA}

        with TestClient(app) as client:
            response = client.post("/api/update-data", json=payload)

        assert response.status_code == 413
        assert not realtime.has_data

    def test_get_not_allowed(self, client):
        assert client.get("/api/update-data").status_code == 405


class TestCors:
    def test_preflight_allows_data_headers(self, client):
        response = client.options(
            "/api/external",
            headers={
                "origin": "http://overlay.test",
                "access-control-request-method": "GET",
                "access-control-request-headers": "x-game-data, x-saves-data",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        allowed = response.headers["access-control-allow-headers"].lower()
        assert "x-game-data" in allowed
        assert "x-saves-data" in allowed

    def test_simple_request_carries_allow_origin(self, client):
        response = client.get("/health", headers={"origin": "http://overlay.test"})

        assert response.headers["access-control-allow-origin"] == "*"


class TestStaticExamples:
    def test_serves_examples_when_static_dir_exists(self, tmp_path):
        static_dir = tmp_path / "static"
        static_dir.mkdir()
        (static_dir / "overlay.html").write_text("<h1>team</h1>")
        app = create_app(settings=_settings(tmp_path, static_dir=str(static_dir)))

        with TestClient(app) as client:
            response = client.get("/examples/overlay.html")

        assert response.status_code == 200
        assert "team" in response.text

    def test_no_examples_mount_without_static_dir(self, client):
        assert client.get("/examples/overlay.html").status_code == 404
