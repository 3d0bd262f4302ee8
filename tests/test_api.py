"""Tests for the read API routes.

Collaborators on app.state are mocks; no lifespan, no store file.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pairwatch.api.app import create_api_app
from pairwatch.exceptions import StoreUnavailableError

INDICATOR_DOC = {
    "_id": "Mint111",
    "tokenAddress": "Mint111",
    "symbol": "BONK",
    "rsiShort": 22.1,
    "rsiLong": 18.3,
}


@pytest.fixture
def app_state() -> dict:
    store = MagicMock()
    store.get_indicators = AsyncMock(return_value=[INDICATOR_DOC])
    store.get_pairs = AsyncMock(return_value=[{"_id": "P1", "pairAddress": "P1"}])
    scheduler = MagicMock()
    scheduler.get_status.return_value = {"running": True, "loops": []}
    dispatcher = MagicMock()
    dispatcher.pending = 0
    dispatcher.dispatched = 3
    database = MagicMock()
    database.is_connected = True
    return {
        "store": store,
        "scheduler": scheduler,
        "dispatcher": dispatcher,
        "database": database,
    }


@pytest.fixture
def client(app_state: dict) -> TestClient:
    app = create_api_app()
    for name, value in app_state.items():
        setattr(app.state, name, value)
    return TestClient(app)


class TestReadRoutes:
    def test_get_rsi(self, client: TestClient) -> None:
        response = client.get("/api/rsi")
        assert response.status_code == 200
        assert response.json() == {"data": [INDICATOR_DOC], "error": None}
        assert response.headers["Cache-Control"] == "no-store, max-age=0"

    def test_get_pairs(self, client: TestClient) -> None:
        response = client.get("/api/pairs")
        assert response.status_code == 200
        assert response.json()["data"][0]["pairAddress"] == "P1"

    def test_get_status(self, client: TestClient) -> None:
        body = client.get("/api/status").json()
        assert body["error"] is None
        assert body["data"]["scheduler"]["running"] is True
        assert body["data"]["notifications"] == {"pending": 0, "dispatched": 3}
        assert body["data"]["store_connected"] is True

    def test_store_unavailable_is_503(self, client: TestClient, app_state: dict) -> None:
        app_state["store"].get_indicators.side_effect = StoreUnavailableError(
            "Document store is not connected."
        )
        response = client.get("/api/rsi")
        assert response.status_code == 503
        assert response.json() == {
            "data": None,
            "error": "Document store is not connected.",
        }


class TestSendEmails:
    def test_accepts_and_dispatches(self, client: TestClient, app_state: dict) -> None:
        response = client.post(
            "/api/send-emails",
            json={
                "symbol": "BONK",
                "action": "BUY",
                "rsi1h": "18.30",
                "rsi5m": "22.10",
                "marketCap": "$4.50M",
                "tokenContractAddress": "Mint111",
            },
        )
        assert response.status_code == 202
        assert response.json()["error"] is None

        [alert] = app_state["dispatcher"].dispatch.call_args.args
        assert alert.symbol == "BONK"
        assert alert.rsi_short == 22.1
        assert alert.rsi_long == 18.3
        assert alert.market_cap == "$4.50M"
        assert alert.token_address == "Mint111"

    def test_missing_symbol_is_400(self, client: TestClient, app_state: dict) -> None:
        response = client.post("/api/send-emails", json={"action": "BUY"})
        assert response.status_code == 400
        assert response.json() == {
            "data": None,
            "error": "Invalid token information provided.",
        }
        app_state["dispatcher"].dispatch.assert_not_called()

    def test_invalid_json_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/send-emails",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body"

    def test_non_numeric_rsi_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/send-emails", json={"symbol": "BONK", "rsi5m": "abc"}
        )
        assert response.status_code == 400
