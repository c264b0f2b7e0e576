import asyncio
from typing import Any

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from quotedesk.providers.fmp import FinancialModelingPrepClient

BASE_URL = "https://fmp.test/api/v3"


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expirations: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.expirations[key] = ttl


class UnreachableRedis:
    async def get(self, key: str) -> str | None:
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def setex(self, key: str, ttl: int, value: str) -> None:
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


class FakeProvider:
    """Serves canned FMP responses and records every request path."""

    def __init__(self, quotes: dict[str, dict] | None = None, rate: Any = 5.43219) -> None:
        self.quotes = quotes or {}
        self.rate = rate
        self.slow: set[str] = set()
        self.statuses: dict[str, int] = {}
        self.requests: list[str] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v3")
        self.requests.append(path)
        if path.startswith("/fx/"):
            if self.rate is None:
                return httpx.Response(503)
            return httpx.Response(200, json=[{"ticker": "USD/BRL", "price": self.rate}])

        symbol = path.removeprefix("/quote/")
        if symbol in self.slow:
            await asyncio.sleep(5)
        if symbol in self.statuses:
            return httpx.Response(self.statuses[symbol])
        if symbol not in self.quotes:
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[self.quotes[symbol]])

    @property
    def quote_requests(self) -> list[str]:
        return [path for path in self.requests if path.startswith("/quote/")]

    @property
    def fx_requests(self) -> list[str]:
        return [path for path in self.requests if path.startswith("/fx/")]


def quote_payload(symbol: str, price: float | None = 100.0, change_pct: float | None = 1.0, **extra) -> dict:
    payload = {
        "symbol": symbol,
        "name": f"{symbol} Corp",
        "price": price,
        "changesPercentage": change_pct,
        "change": 1.5,
        "dayLow": 98.1,
        "dayHigh": 101.9,
        "yearHigh": 120.0,
        "yearLow": 80.0,
        "marketCap": 1_000_000.4,
        "priceAvg50": 99.5,
        "priceAvg200": 95.25,
        "volume": 1000.6,
        "avgVolume": 900,
        "exchange": "NASDAQ",
        "open": 99.0,
        "previousClose": 98.5,
        "eps": 6.1,
        "pe": 24.3,
        "earningsAnnouncement": "2026-10-30T20:00:00.000+0000",
        "sharesOutstanding": 15_000_000,
        "timestamp": 1_760_000_000,
    }
    payload.update(extra)
    return payload


def make_fmp_client(handler, **overrides) -> FinancialModelingPrepClient:
    http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    options: dict[str, Any] = {
        "api_key": "test-key",
        "timeout": 1.0,
        "max_retries": 2,
        "retry_backoff_seconds": 0,
    }
    options.update(overrides)
    return FinancialModelingPrepClient(http, **options)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def unreachable_redis() -> UnreachableRedis:
    return UnreachableRedis()


@pytest.fixture
def make_quote_payload():
    return quote_payload


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_fmp():
    return make_fmp_client
