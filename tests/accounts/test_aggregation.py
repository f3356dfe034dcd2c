from accounts.aggregation import AggregationError, aggregate_portfolios
from exchanges.schemas import BalanceEntry, PortfolioSnapshot


def _snapshot(exchange, *entries):
    return PortfolioSnapshot(exchange=exchange, portfolio=list(entries))


def test_same_currency_is_summed_across_exchanges():
    xt = _snapshot("xt", BalanceEntry("usdt", 90.0, 10.0, 100.0))
    bybit = _snapshot("bybit", BalanceEntry("USDT", 50.0, 0.0, 50.0, usd_value=50.0))

    combined = aggregate_portfolios([("xt", xt), ("bybit", bybit)])

    [entry] = combined.combined_portfolio
    assert entry.currency == "usdt"
    assert (entry.available, entry.frozen, entry.total) == (140.0, 10.0, 150.0)
    assert entry.usd_value == 50.0
    assert entry.exchanges == ["xt", "bybit"]
    assert combined.total_assets == 1


def test_disjoint_currencies_are_concatenated():
    xt = _snapshot("xt", BalanceEntry("btc", 1.0, 0.0, 1.0), BalanceEntry("eth", 2.0, 0.0, 2.0))
    binance = _snapshot("binance", BalanceEntry("SOL", 3.0, 0.0, 3.0))

    combined = aggregate_portfolios([("xt", xt), ("binance", binance)])

    assert [entry.currency for entry in combined.combined_portfolio] == ["btc", "eth", "SOL"]
    assert combined.total_assets == len(xt.portfolio) + len(binance.portfolio)


def test_inputs_are_not_mutated():
    original = BalanceEntry("usdt", 1.0, 0.0, 1.0)
    xt = _snapshot("xt", original)
    bybit = _snapshot("bybit", BalanceEntry("usdt", 2.0, 0.0, 2.0))

    aggregate_portfolios([("xt", xt), ("bybit", bybit)])

    assert original.total == 1.0
    assert original.exchanges == []


def test_serialized_view_includes_errors_only_when_present():
    xt = _snapshot("xt", BalanceEntry("usdt", 1.0, 0.0, 1.0))

    clean = aggregate_portfolios([("xt", xt)]).to_dict()
    partial = aggregate_portfolios(
        [("xt", xt)], errors=[AggregationError("bybit", "Invalid API key", 10003)]
    ).to_dict()

    assert "errors" not in clean
    assert clean["combinedPortfolio"][0]["exchanges"] == ["xt"]
    assert set(clean["exchanges"]) == {"xt"}
    assert partial["errors"] == [{"exchange": "bybit", "error": "Invalid API key", "code": 10003}]


def test_empty_input():
    combined = aggregate_portfolios([])

    assert combined.combined_portfolio == []
    assert not combined.succeeded
