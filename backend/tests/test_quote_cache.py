import asyncio
import datetime

from quotedesk.cache import QuoteCache, cache_key
from quotedesk.schemas.quote import NOT_AVAILABLE, CacheEntry, Quote


def build_entry() -> CacheEntry:
    return CacheEntry(
        tickers=["AAPL", "MSFT"],
        timestamp=datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.UTC),
        data=[
            Quote(ticker="AAPL", price=150.25, change_percentage=1.1, volume=1000, timestamp=1),
            Quote(ticker="MSFT", price=410.0, timestamp=2),
        ],
    )


def test_cache_key_ignores_order_and_duplicates() -> None:
    assert cache_key(["AAPL", "MSFT"]) == cache_key(["MSFT", "AAPL", "AAPL"])
    assert cache_key(["AAPL"]) != cache_key(["AAPL", "MSFT"])


def test_cache_key_encodes_sorted_tickers() -> None:
    assert cache_key(["MSFT", "AAPL"]) == "portfolio:quotes:QUFQTCxNU0ZU"


def test_cache_roundtrip(fake_redis) -> None:
    cache = QuoteCache(fake_redis)
    entry = build_entry()
    key = cache.key_for(entry.tickers)

    asyncio.run(cache.put(key, entry, ttl_seconds=300))
    cached = asyncio.run(cache.get(key))

    assert cached is not None
    assert cached.data == entry.data
    assert cached.data[1].change_percentage is NOT_AVAILABLE
    assert fake_redis.expirations[key] == 300
    assert '"changePercentage":"Not Available"' in fake_redis.store[key]


def test_missing_key_is_a_miss(fake_redis) -> None:
    assert asyncio.run(QuoteCache(fake_redis).get("portfolio:quotes:nothing")) is None


def test_malformed_payload_is_a_miss(fake_redis) -> None:
    fake_redis.store["portfolio:quotes:bad"] = "{not json"
    fake_redis.store["portfolio:quotes:shape"] = '{"tickers": "AAPL"}'
    cache = QuoteCache(fake_redis)

    assert asyncio.run(cache.get("portfolio:quotes:bad")) is None
    assert asyncio.run(cache.get("portfolio:quotes:shape")) is None


def test_entry_without_quotes_is_a_miss(fake_redis) -> None:
    cache = QuoteCache(fake_redis)
    empty = CacheEntry(tickers=["ZZZZ"], timestamp=datetime.datetime.now(datetime.UTC))
    fake_redis.store["portfolio:quotes:empty"] = empty.model_dump_json()

    assert asyncio.run(cache.get("portfolio:quotes:empty")) is None


def test_unreachable_backend_is_a_miss(unreachable_redis) -> None:
    assert asyncio.run(QuoteCache(unreachable_redis).get("portfolio:quotes:any")) is None
