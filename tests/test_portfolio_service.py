import asyncio

from portfolio_tracker.cache.ttl_cache import TTLCache
from portfolio_tracker.portfolio.portfolio_service import PortfolioService
from portfolio_tracker.portfolio.store import PortfolioStore
from portfolio_tracker.providers import alpha_vantage
from portfolio_tracker.providers.alpha_vantage import AlphaVantageClient
from portfolio_tracker.services.quote_poller import QuotePoller


class _Transport:
    def __init__(self, prices: dict[str, str]) -> None:
        self.prices = prices
        self.calls: list[str] = []

    def __call__(self, url: str, provider: str, params: dict[str, str], timeout_seconds: float) -> dict:
        symbol = params["symbol"]
        self.calls.append(symbol)
        if symbol not in self.prices:
            return {"Global Quote": {}}
        return {
            "Global Quote": {
                "05. price": self.prices[symbol],
                "07. latest trading day": "2024-05-10",
                "08. previous close": "100.00",
            }
        }


def _service(monkeypatch, prices: dict[str, str]) -> tuple[PortfolioService, _Transport]:
    transport = _Transport(prices)
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)
    client = AlphaVantageClient("demo", cache=TTLCache(default_ttl_seconds=60))
    service = PortfolioService(
        client,
        store=PortfolioStore(quote_client=client),
        poller=QuotePoller(client, pacing_seconds=0),
    )
    return service, transport


def test_add_position_triggers_refresh_and_snapshot(monkeypatch) -> None:
    service, transport = _service(monkeypatch, {"AAPL": "110.00"})

    async def scenario() -> dict:
        result = await service.add_position("aapl", 10, 100)
        assert result.ok
        await service.poller.wait()
        return service.snapshot()

    snapshot = asyncio.run(scenario())

    # Validation and display share one cached request.
    assert transport.calls == ["AAPL"]
    row = snapshot["rows"][0]
    assert row["symbol"] == "AAPL"
    assert row["quote_status"] == "ready"
    assert row["pnl"] == 100.0
    assert row["status"] == "profit"
    assert row["last_refreshed"] == "2024-05-10"
    assert snapshot["totals"]["priced_count"] == 1
    assert snapshot["totals"]["market_value"] == 1100.0


def test_unknown_symbol_is_not_added(monkeypatch) -> None:
    service, _ = _service(monkeypatch, {})

    result = asyncio.run(service.add_position("ZZZZ", 1, 1))

    assert result.ok is False
    assert result.code == "NO_PRICE_DATA"
    assert service.snapshot()["rows"] == []
    assert service.poller.batches_started == 0


def test_remove_prunes_quote_state(monkeypatch) -> None:
    service, _ = _service(monkeypatch, {"AAPL": "110.00", "MSFT": "400.00"})

    async def scenario() -> None:
        aapl = await service.add_position("AAPL", 1, 100)
        await service.add_position("MSFT", 1, 100)
        await service.poller.wait()
        assert set(service.poller.states) == {"AAPL", "MSFT"}
        service.remove_position(aapl.position.id)
        await service.poller.wait()
        assert set(service.poller.states) == {"MSFT"}
        service.clear_positions()
        await service.close()

    asyncio.run(scenario())

    assert service.poller.states == {}
    assert service.snapshot()["totals"]["positions"] == 0


def test_manual_refresh_reports_queued_symbols(monkeypatch) -> None:
    service, _ = _service(monkeypatch, {"AAPL": "110.00"})

    async def scenario() -> int:
        await service.add_position("AAPL", 1, 100)
        queued = service.refresh_quotes()
        await service.poller.wait()
        return queued

    assert asyncio.run(scenario()) == 1
    assert service.poller.state("AAPL").status == "ready"
