from __future__ import annotations

import base64
from collections.abc import Iterable

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from quotedesk.config.settings import Settings
from quotedesk.logger import get_logger
from quotedesk.schemas.quote import CacheEntry

logger = get_logger(__name__)

DEFAULT_KEY_PREFIX = "portfolio:quotes"


def build_redis_client(settings: Settings) -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True)


def cache_key(tickers: Iterable[str], prefix: str = DEFAULT_KEY_PREFIX) -> str:
    # Quotes are public data, so the key depends only on the ticker set.
    joined = ",".join(sorted(set(tickers)))
    encoded = base64.b64encode(joined.encode("utf-8")).decode("ascii")
    return f"{prefix}:{encoded}"


class QuoteCache:
    def __init__(self, client: Redis, prefix: str = DEFAULT_KEY_PREFIX) -> None:
        self._client = client
        self.prefix = prefix

    def key_for(self, tickers: Iterable[str]) -> str:
        return cache_key(tickers, self.prefix)

    async def get(self, key: str) -> CacheEntry | None:
        """Return the cached batch for ``key``; any failure reads as a miss."""
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as exc:
            logger.warning("Redis cache error, continuing without cache", key=key, error=repr(exc))
            return None

        if not raw:
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding malformed cache entry", key=key, error=str(exc))
            return None

        if not entry.data:
            return None
        return entry

    async def put(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        await self._client.setex(key, ttl_seconds, entry.model_dump_json(by_alias=True))
        logger.info("Quotes saved in cache", key=key, ttl_seconds=ttl_seconds, count=len(entry.data))
