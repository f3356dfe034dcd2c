import httpx
import pytest
from fastapi.testclient import TestClient

from accounts.credentials import MISSING_KEYS_MESSAGE
from exchanges.registry import build_default_registry
from exchanges.schemas import BalanceEntry, ExchangeResult, PortfolioSnapshot
from services.webapp.dependencies import get_exchange_registry
from services.webapp.main import app

XT_HEADERS = {"x-api-key": "key", "x-secret-key": "secret"}


@pytest.fixture
def registry():
    def offline(request):
        raise AssertionError(f"unexpected exchange call: {request.url}")

    return build_default_registry(transport=httpx.MockTransport(offline))


@pytest.fixture
def client(registry):
    app.dependency_overrides[get_exchange_registry] = lambda: registry
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def _stub(mocker, registry, exchange, method, result):
    return mocker.patch.object(registry.get(exchange), method, new=mocker.AsyncMock(return_value=result))


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "OK"


def test_limit_without_price_is_rejected_before_anything_else(client, registry, mocker):
    place = _stub(mocker, registry, "xt", "place_buy_order", ExchangeResult.ok("xt", {}))

    # No credentials and an unknown exchange: the price rule still wins.
    response = client.post("/api/trading/buy", json={"symbol": "btc_usdt", "quantity": 1, "exchange": "nope"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Price is required for LIMIT orders",
        "code": "INVALID_REQUEST",
    }
    place.assert_not_called()


def test_market_with_price_is_rejected(client):
    response = client.post(
        "/api/trading/sell",
        json={"symbol": "btc_usdt", "quantity": 1, "price": 100, "type": "MARKET"},
        headers=XT_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Do not send price for MARKET orders"


def test_invalid_order_type(client):
    response = client.post(
        "/api/trading/buy", json={"symbol": "btc_usdt", "quantity": 1, "price": 1, "type": "stop"}, headers=XT_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid order type. Must be one of: LIMIT, MARKET"


def test_unknown_exchange(client):
    response = client.post(
        "/api/trading/buy",
        json={"symbol": "btc_usdt", "quantity": 1, "price": 1, "exchange": "okx"},
        headers=XT_HEADERS,
    )

    assert response.status_code == 400
    assert response.json()["code"] == "UNKNOWN_EXCHANGE"


def test_missing_symbol(client):
    response = client.post("/api/trading/buy", json={"quantity": 1, "price": 1}, headers=XT_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "Symbol is required and must be a string"


def test_missing_credentials(client):
    response = client.post("/api/trading/buy", json={"symbol": "btc_usdt", "quantity": 1, "price": 1})

    assert response.status_code == 401
    assert response.json()["error"] == MISSING_KEYS_MESSAGE


def test_malformed_body_is_a_bad_request(client):
    response = client.post(
        "/api/trading/buy", json={"symbol": "btc_usdt", "quantity": "lots", "price": 1}, headers=XT_HEADERS
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"


def test_successful_order_returns_created(client, registry, mocker):
    place = _stub(mocker, registry, "bybit", "place_buy_order", ExchangeResult.ok("bybit", {"orderId": "7"}))

    response = client.post(
        "/api/trading/buy",
        json={"symbol": "BTCUSDT", "quantity": 0.01, "price": 50000, "exchange": "bybit",
              "apiKey": "body-key", "secretKey": "body-secret"},
    )

    assert response.status_code == 201
    assert response.json() == {"success": True, "exchange": "bybit", "data": {"orderId": "7"}}
    args = place.await_args.args
    assert args[:4] == ("BTCUSDT", 0.01, 50000.0, "LIMIT")
    assert args[4].api_key == "body-key"


def test_exchange_rejection_is_a_bad_request(client, registry, mocker):
    failure = ExchangeResult.fail(
        "xt", "Order value too small", code="ORDER_F0304", error_code="VALUE_TOO_SMALL", originalError="ORDER_F0304"
    )
    _stub(mocker, registry, "xt", "place_sell_order", failure)

    response = client.post(
        "/api/trading/sell", json={"symbol": "btc_usdt", "quantity": 1, "price": 1}, headers=XT_HEADERS
    )

    assert response.status_code == 400
    body = response.json()
    assert body["errorCode"] == "VALUE_TOO_SMALL"
    assert body["code"] == "ORDER_F0304"


def test_portfolio_for_selected_exchange(client, registry, mocker):
    snapshot = PortfolioSnapshot(exchange="binance", portfolio=[BalanceEntry("BTC", 1.0, 0.0, 1.0, usd_value=60000.0)])
    _stub(mocker, registry, "binance", "get_portfolio", ExchangeResult.ok("binance", snapshot))

    response = client.get("/api/trading/portfolio", params={"exchange": "binance"}, headers=XT_HEADERS)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalAssets"] == 1
    assert data["portfolio"][0]["usdValue"] == 60000.0


def test_cancel_order_passes_symbol(client, registry, mocker):
    cancel = _stub(mocker, registry, "binance", "cancel_order", ExchangeResult.ok("binance", {"status": "CANCELED"}))

    response = client.delete(
        "/api/trading/orders/42", params={"exchange": "binance", "symbol": "BTCUSDT"}, headers=XT_HEADERS
    )

    assert response.status_code == 200
    assert cancel.await_args.kwargs["symbol"] == "BTCUSDT"


def test_connection_check_needs_no_credentials(client, registry, mocker):
    _stub(mocker, registry, "xt", "test_connection", ExchangeResult.ok("xt", {"connected": True}))

    response = client.get("/api/trading/connection")

    assert response.status_code == 200
    assert response.json()["data"] == {"connected": True}


def test_combined_portfolio_without_credentials(client):
    response = client.get("/api/trading/portfolio/combined")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "No valid exchange credentials provided"
    assert "x-bybit-api-key" in body["requiredHeaders"]
    assert "x-kucoin-passphrase" in body["requiredHeaders"]


def test_combined_portfolio_with_one_exchange(client, registry, mocker):
    snapshot = PortfolioSnapshot(exchange="bybit", portfolio=[BalanceEntry("USDT", 5.0, 0.0, 5.0)])
    _stub(mocker, registry, "bybit", "get_portfolio", ExchangeResult.ok("bybit", snapshot))

    response = client.get(
        "/api/trading/portfolio/combined",
        headers={"x-bybit-api-key": "k", "x-bybit-secret-key": "s"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert list(data["exchanges"]) == ["bybit"]
    assert data["combinedPortfolio"][0]["exchanges"] == ["bybit"]
    assert "errors" not in data


def test_combined_portfolio_when_every_exchange_fails(client, registry, mocker):
    _stub(mocker, registry, "xt", "get_portfolio", ExchangeResult.fail("xt", "Invalid key", code="AUTH_001"))

    response = client.get("/api/trading/portfolio/combined", headers={"x-xt-api-key": "k", "x-xt-secret-key": "s"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Failed to fetch portfolio from every exchange with credentials"
    assert body["errors"] == [{"exchange": "xt", "error": "Invalid key", "code": "AUTH_001"}]
