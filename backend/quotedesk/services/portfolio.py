from __future__ import annotations

import asyncio
import datetime
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from quotedesk.cache import QuoteCache
from quotedesk.config.settings import Settings
from quotedesk.db.audit import PortfolioQueryAudit
from quotedesk.logger import get_logger
from quotedesk.portfolio.metrics import aggregate_quotes
from quotedesk.portfolio.response import (
    NO_DATA_ERROR,
    NO_DATA_MESSAGE,
    compose_failure,
    compose_response,
)
from quotedesk.providers.batch import BatchResult, fetch_all
from quotedesk.providers.fmp import FinancialModelingPrepClient
from quotedesk.schemas.portfolio import PortfolioRequest
from quotedesk.schemas.quote import CacheEntry
from quotedesk.services.side_effects import SideEffectOutcome, run_side_effect
from quotedesk.tickers import unique_tickers

logger = get_logger(__name__)

TOOL_NAME = "getStockPortfolio"
TOOL_DESCRIPTION = (
    "Gets quote data and variations for a list of stock tickers, with cache and persistence"
)


@dataclass
class PortfolioOutcome:
    document: dict[str, Any]
    batch: BatchResult | None = None
    cache_hit: bool = False
    side_effects: list[SideEffectOutcome] = field(default_factory=list)


def _echo_tickers(tickers: Any) -> list[str]:
    if isinstance(tickers, (list, tuple)):
        return [str(ticker) for ticker in tickers]
    return []


class PortfolioService:
    """Runs a portfolio quote request end to end.

    Clients are built once at startup and handed in; the service itself
    holds no mutable state between requests.
    """

    def __init__(
        self,
        fmp: FinancialModelingPrepClient,
        cache: QuoteCache,
        audit: PortfolioQueryAudit | None = None,
        *,
        batch_size: int = 5,
        cache_ttl_seconds: int = 300,
    ) -> None:
        self.fmp = fmp
        self.cache = cache
        self.audit = audit
        self.batch_size = batch_size
        self.cache_ttl_seconds = cache_ttl_seconds

    @classmethod
    def from_settings(
        cls,
        fmp: FinancialModelingPrepClient,
        cache: QuoteCache,
        audit: PortfolioQueryAudit | None,
        settings: Settings,
    ) -> "PortfolioService":
        return cls(
            fmp,
            cache,
            audit,
            batch_size=settings.providers.batch_size,
            cache_ttl_seconds=settings.cache.ttl_seconds,
        )

    async def get_portfolio(
        self,
        tickers: Sequence[str],
        user_id: str | None = None,
        user_language: str | None = None,
    ) -> dict[str, Any]:
        outcome = await self.execute(tickers, user_id=user_id, user_language=user_language)
        return outcome.document

    async def execute(
        self,
        tickers: Sequence[str],
        user_id: str | None = None,
        user_language: str | None = None,
    ) -> PortfolioOutcome:
        try:
            return await self._execute(tickers, user_id, user_language)
        except Exception:
            logger.exception("Critical error in portfolio query", tickers=_echo_tickers(tickers))
            return PortfolioOutcome(document=compose_failure(_echo_tickers(tickers)))

    async def _execute(
        self,
        tickers: Sequence[str],
        user_id: str | None,
        user_language: str | None,
    ) -> PortfolioOutcome:
        request = PortfolioRequest(
            tickers=tickers, user_id=user_id, user_language=user_language
        )
        requested = request.tickers
        unique = unique_tickers(requested)
        logger.info("Starting portfolio query", tickers=requested)

        key = self.cache.key_for(unique)
        side_effects: list[SideEffectOutcome] = []
        batch: BatchResult | None = None

        entry = await self.cache.get(key)
        if entry is not None:
            logger.info("Quotes found in cache", key=key, count=len(entry.data))
            quotes = entry.data
            # The rate is refreshed on every request, cached quotes or not.
            rate = await self.fmp.fetch_exchange_rate()
        else:
            batch, rate = await asyncio.gather(
                fetch_all(self.fmp.fetch_quote, unique, self.batch_size),
                self.fmp.fetch_exchange_rate(),
            )
            quotes = batch.quotes
            if quotes:
                fresh = CacheEntry(
                    tickers=sorted(unique),
                    timestamp=datetime.datetime.now(datetime.UTC),
                    data=quotes,
                )
                side_effects.append(
                    await run_side_effect(
                        "cache_store", self.cache.put(key, fresh, self.cache_ttl_seconds)
                    )
                )

        if request.user_id and quotes and self.audit is not None:
            side_effects.append(
                await run_side_effect(
                    "audit_record", self.audit.record(request.user_id, requested, quotes)
                )
            )

        if not quotes:
            logger.warning("No quotes found for portfolio query", tickers=requested)
            document = compose_failure(requested, error=NO_DATA_ERROR, message=NO_DATA_MESSAGE)
            return PortfolioOutcome(
                document=document,
                batch=batch,
                cache_hit=batch is None,
                side_effects=side_effects,
            )

        metrics = aggregate_quotes(quotes)
        document = compose_response(requested, quotes, metrics, rate, request.user_language)
        logger.info(
            "Portfolio query completed",
            found=len(quotes),
            requested=len(unique),
            cache_hit=batch is None,
        )
        return PortfolioOutcome(
            document=document,
            batch=batch,
            cache_hit=batch is None,
            side_effects=side_effects,
        )
