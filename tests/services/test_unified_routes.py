import httpx
import pytest
from fastapi.testclient import TestClient

from exchanges.registry import build_default_registry
from exchanges.schemas import BalanceEntry, ExchangeResult, PortfolioSnapshot
from services.webapp.dependencies import get_exchange_registry
from services.webapp.main import app


@pytest.fixture
def registry():
    return build_default_registry(transport=httpx.MockTransport(lambda request: httpx.Response(503)))


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_exchange_registry] = lambda: registry
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_exchange_balance_uses_prefixed_headers(client, registry, mocker):
    snapshot = PortfolioSnapshot(exchange="bitget", portfolio=[BalanceEntry("USDT", 1.0, 0.0, 1.0)])
    portfolio = mocker.patch.object(
        registry.get("bitget"), "get_portfolio", new=mocker.AsyncMock(return_value=ExchangeResult.ok("bitget", snapshot))
    )

    response = client.get(
        "/api/unified/balance/bitget",
        headers={"x-bitget-api-key": "k", "x-bitget-secret-key": "s", "x-bitget-passphrase": "p"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["portfolio"][0]["currency"] == "USDT"
    assert portfolio.await_args.args[0].passphrase == "p"


def test_exchange_balance_requires_passphrase(client):
    response = client.get(
        "/api/unified/balance/kucoin",
        headers={"x-kucoin-api-key": "k", "x-kucoin-secret-key": "s"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "KuCoin passphrase required in header x-kucoin-passphrase"


def test_generic_headers_are_not_used_by_unified_routes(client):
    response = client.get("/api/unified/balance/xt", headers={"x-api-key": "k", "x-secret-key": "s"})

    assert response.status_code == 401


def test_exchange_order_on_dedicated_route(client, registry, mocker):
    place = mocker.patch.object(
        registry.get("binance"),
        "place_sell_order",
        new=mocker.AsyncMock(return_value=ExchangeResult.ok("binance", {"orderId": 9})),
    )

    response = client.post(
        "/api/unified/binance/sell",
        json={"symbol": "ETHUSDT", "quantity": 0.5, "type": "MARKET"},
        headers={"x-binance-api-key": "k", "x-binance-secret-key": "s"},
    )

    assert response.status_code == 201
    assert place.await_args.args[:4] == ("ETHUSDT", 0.5, None, "MARKET")


def test_unknown_exchange_on_dedicated_route(client):
    response = client.post("/api/unified/okx/buy", json={"symbol": "BTCUSDT", "quantity": 1, "price": 1})

    assert response.status_code == 400
    assert response.json()["code"] == "UNKNOWN_EXCHANGE"


def test_unified_balance_reports_partial_failures(client, registry, mocker):
    snapshot = PortfolioSnapshot(exchange="xt", portfolio=[BalanceEntry("btc", 1.0, 0.0, 1.0)])
    mocker.patch.object(
        registry.get("xt"), "get_portfolio", new=mocker.AsyncMock(return_value=ExchangeResult.ok("xt", snapshot))
    )

    # Bybit goes through the real adapter and hits the 503 transport.
    response = client.get(
        "/api/unified/balance",
        headers={
            "x-xt-api-key": "k",
            "x-xt-secret-key": "s",
            "x-bybit-api-key": "k",
            "x-bybit-secret-key": "s",
        },
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert list(data["exchanges"]) == ["xt"]
    assert [error["exchange"] for error in data["errors"]] == ["bybit"]
    assert data["totalAssets"] == 1
