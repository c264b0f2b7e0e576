from __future__ import annotations

from collections.abc import Sequence

from quotedesk.rounding import round_financial, round_whole
from quotedesk.schemas.portfolio import PortfolioMetrics
from quotedesk.schemas.quote import NOT_AVAILABLE, Quote, is_available


def _available(quotes: Sequence[Quote], field: str) -> list:
    values = (getattr(quote, field) for quote in quotes)
    return [value for value in values if is_available(value)]


def _best_and_worst(quotes: Sequence[Quote]) -> tuple[Quote | None, Quote | None]:
    best: Quote | None = None
    worst: Quote | None = None
    for quote in quotes:
        change = quote.change_percentage
        if not is_available(change):
            continue
        # Strict comparisons keep the first-seen quote on ties.
        if best is None or change > best.change_percentage:
            best = quote
        if worst is None or change < worst.change_percentage:
            worst = quote
    return best, worst


def aggregate_quotes(quotes: Sequence[Quote]) -> PortfolioMetrics:
    prices = _available(quotes, "price")
    changes = _available(quotes, "change_percentage")
    volumes = _available(quotes, "volume")
    market_caps = _available(quotes, "market_cap")

    best, worst = _best_and_worst(quotes)

    return PortfolioMetrics(
        total_value=round_financial(sum(prices)) if prices else NOT_AVAILABLE,
        average_change=(
            round_financial(sum(changes) / len(changes)) if changes else NOT_AVAILABLE
        ),
        total_volume=round_whole(sum(volumes)) if volumes else NOT_AVAILABLE,
        total_market_cap=round_whole(sum(market_caps)) if market_caps else NOT_AVAILABLE,
        best_performer=best,
        worst_performer=worst,
    )
