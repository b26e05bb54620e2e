import asyncio
import threading

import pytest

from portfolio_tracker.cache.ttl_cache import TTLCache
from portfolio_tracker.providers import alpha_vantage
from portfolio_tracker.providers.alpha_vantage import AlphaVantageClient, to_number
from portfolio_tracker.providers.http import ProviderError
from portfolio_tracker.providers.models import Quote


def _global_quote(price: str | None, previous_close: str | None = "120.00", day: str = "2024-05-10") -> dict:
    quote: dict[str, str] = {"01. symbol": "AAPL", "07. latest trading day": day}
    if price is not None:
        quote["05. price"] = price
    if previous_close is not None:
        quote["08. previous close"] = previous_close
    return {"Global Quote": quote}


class _FakeTransport:
    def __init__(self, payload: object) -> None:
        self.payload = payload
        self.calls: list[dict[str, str]] = []

    def __call__(self, url: str, provider: str, params: dict[str, str], timeout_seconds: float) -> object:
        self.calls.append(params)
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def _fetch_error(client: AlphaVantageClient, symbol: str) -> ProviderError:
    with pytest.raises(ProviderError) as exc:
        asyncio.run(client.fetch_quote(symbol))
    return exc.value


def test_fetch_quote_parses_global_quote(monkeypatch) -> None:
    transport = _FakeTransport(_global_quote("123.45", "120.00"))
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)

    quote = asyncio.run(AlphaVantageClient("demo").fetch_quote(" aapl "))

    assert quote == Quote(symbol="AAPL", price=123.45, previous_close=120.0, last_refreshed="2024-05-10")
    assert transport.calls == [{"function": "GLOBAL_QUOTE", "symbol": "AAPL", "apikey": "demo"}]


def test_fetch_quote_without_previous_close(monkeypatch) -> None:
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport(_global_quote("50.5", previous_close=None)))
    quote = asyncio.run(AlphaVantageClient("demo").fetch_quote("MSFT"))
    assert quote.price == 50.5
    assert quote.previous_close is None


def test_note_is_rate_limited_not_success(monkeypatch) -> None:
    payload = {"Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute."}
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport(payload))
    assert _fetch_error(AlphaVantageClient("demo"), "AAPL").code == "RATE_LIMITED"


def test_information_is_rate_limited(monkeypatch) -> None:
    payload = {"Information": "We have detected your API key and our standard API rate limit is 25 requests per day."}
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport(payload))
    error = _fetch_error(AlphaVantageClient("demo"), "AAPL")
    assert error.code == "RATE_LIMITED"
    assert "25 requests per day" in error.message


def test_error_message_is_provider_error(monkeypatch) -> None:
    payload = {"Error Message": "Invalid API call."}
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport(payload))
    error = _fetch_error(AlphaVantageClient("demo"), "AAPL")
    assert error.code == "PROVIDER_ERROR"
    assert error.message == "Alpha Vantage error: Invalid API call."


def test_empty_global_quote_is_no_price_data(monkeypatch) -> None:
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport({"Global Quote": {}}))
    assert _fetch_error(AlphaVantageClient("demo"), "NOPE").code == "NO_PRICE_DATA"


def test_non_numeric_price_is_malformed(monkeypatch) -> None:
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport(_global_quote("n/a")))
    assert _fetch_error(AlphaVantageClient("demo"), "AAPL").code == "MALFORMED_PRICE"


def test_missing_key_fails_fast_without_network(monkeypatch) -> None:
    transport = _FakeTransport(_global_quote("1.00"))
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)
    assert _fetch_error(AlphaVantageClient(None), "AAPL").code == "MISSING_CREDENTIAL"
    assert transport.calls == []


def test_empty_symbol_is_rejected(monkeypatch) -> None:
    transport = _FakeTransport(_global_quote("1.00"))
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)
    assert _fetch_error(AlphaVantageClient("demo"), "   ").code == "EMPTY_SYMBOL"
    assert transport.calls == []


def test_transport_error_propagates(monkeypatch) -> None:
    failure = ProviderError("alphavantage", "TRANSPORT_ERROR", "HTTP 503", 503)
    monkeypatch.setattr(alpha_vantage, "fetch_json", _FakeTransport(failure))
    error = _fetch_error(AlphaVantageClient("demo"), "AAPL")
    assert error.code == "TRANSPORT_ERROR"
    assert error.status == 503


def test_cache_serves_second_call_within_ttl(monkeypatch) -> None:
    now = [1000.0]
    transport = _FakeTransport(_global_quote("10.00"))
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)
    client = AlphaVantageClient("demo", cache=TTLCache(default_ttl_seconds=60, clock=lambda: now[0]))

    first = asyncio.run(client.fetch_quote("AAPL"))
    now[0] += 59
    second = asyncio.run(client.fetch_quote("aapl"))

    assert len(transport.calls) == 1
    assert second is first

    now[0] += 2
    asyncio.run(client.fetch_quote("AAPL"))
    assert len(transport.calls) == 2


def test_failures_are_not_cached(monkeypatch) -> None:
    transport = _FakeTransport({"Note": "slow down"})
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)
    client = AlphaVantageClient("demo")
    _fetch_error(client, "AAPL")

    transport.payload = _global_quote("10.00")
    assert asyncio.run(client.fetch_quote("AAPL")).price == 10.0
    assert len(transport.calls) == 2


def test_preset_cancel_event_skips_request(monkeypatch) -> None:
    transport = _FakeTransport(_global_quote("10.00"))
    monkeypatch.setattr(alpha_vantage, "fetch_json", transport)
    client = AlphaVantageClient("demo")

    async def scenario() -> ProviderError:
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(ProviderError) as exc:
            await client.fetch_quote("AAPL", cancel)
        return exc.value

    assert asyncio.run(scenario()).code == "CANCELED"
    assert transport.calls == []


def test_cancel_during_request_discards_response(monkeypatch) -> None:
    release = threading.Event()

    def slow_fetch(url: str, provider: str, params: dict[str, str], timeout_seconds: float) -> dict:
        release.wait(5)
        return _global_quote("10.00")

    monkeypatch.setattr(alpha_vantage, "fetch_json", slow_fetch)
    client = AlphaVantageClient("demo")

    async def scenario() -> ProviderError:
        cancel = asyncio.Event()
        task = asyncio.create_task(client.fetch_quote("AAPL", cancel))
        await asyncio.sleep(0.05)
        cancel.set()
        try:
            with pytest.raises(ProviderError) as exc:
                await asyncio.wait_for(task, timeout=2)
        finally:
            release.set()
        return exc.value

    assert asyncio.run(scenario()).code == "CANCELED"
    assert client.cache.get("AAPL") is None


def test_to_number_rejects_garbage() -> None:
    assert to_number("12.5") == 12.5
    assert to_number("") is None
    assert to_number(None) is None
    assert to_number("abc") is None
    assert to_number("nan") is None
