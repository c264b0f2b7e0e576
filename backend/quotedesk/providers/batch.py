from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from quotedesk.logger import get_logger
from quotedesk.schemas.quote import Quote

logger = get_logger(__name__)

QuoteFetch = Callable[[str], Awaitable[Quote | None]]


@dataclass(frozen=True)
class BatchResult:
    requested: list[str]
    quotes: list[Quote] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)

    @property
    def success_ratio(self) -> float:
        if not self.requested:
            return 0.0
        return len(self.quotes) / len(self.requested)


def _windows(tickers: Sequence[str], size: int) -> list[Sequence[str]]:
    return [tickers[start : start + size] for start in range(0, len(tickers), size)]


async def fetch_all(
    fetch: QuoteFetch, tickers: Sequence[str], window_size: int = 5
) -> BatchResult:
    """Fetch quotes for ``tickers`` at most ``window_size`` at a time.

    Each window runs concurrently and fully settles before the next one
    starts. A ticker whose fetch returns ``None`` or raises is dropped;
    its siblings are unaffected.
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1")

    logger.info("Starting quote batch", tickers=list(tickers), count=len(tickers))
    quotes: list[Quote] = []
    dropped: list[str] = []

    for number, window in enumerate(_windows(tickers, window_size), start=1):
        logger.debug("Processing window", window=number, tickers=list(window))
        results = await asyncio.gather(
            *(fetch(ticker) for ticker in window), return_exceptions=True
        )
        for ticker, outcome in zip(window, results):
            if isinstance(outcome, Exception):
                logger.error(
                    "Quote fetch raised unexpectedly",
                    ticker=ticker,
                    error=repr(outcome),
                )
                dropped.append(ticker)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif outcome is None:
                dropped.append(ticker)
            else:
                quotes.append(outcome)

    result = BatchResult(requested=list(tickers), quotes=quotes, dropped=dropped)
    logger.info(
        "Quote batch completed",
        found=len(quotes),
        requested=len(tickers),
        dropped=dropped,
    )
    return result
