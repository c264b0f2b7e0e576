from __future__ import annotations

import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from quotedesk.schemas.quote import (
    NOT_AVAILABLE,
    CamelModel,
    MaybeFloat,
    MaybeInt,
    MaybeStr,
    Quote,
)
from quotedesk.tickers import clean_ticker


class PortfolioRequest(CamelModel):
    tickers: list[str] = Field(
        min_length=1,
        description='List of stock tickers (ex: ["AAPL", "MSFT", "BBAS3", "TAEE11"])',
    )
    user_id: Optional[str] = Field(
        default=None, description="User ID (optional, for persistence)"
    )
    user_language: Optional[str] = Field(
        default=None,
        description="Language of the user's question (pt/en), echoed back as a response hint",
    )

    @field_validator("tickers")
    @classmethod
    def _clean_tickers(cls, value: list[str]) -> list[str]:
        cleaned = [clean_ticker(ticker) for ticker in value]
        if any(not ticker for ticker in cleaned):
            raise ValueError("tickers must not be blank")
        return cleaned


class PortfolioMetrics(CamelModel):
    total_value: MaybeFloat = NOT_AVAILABLE
    average_change: MaybeFloat = NOT_AVAILABLE
    total_volume: MaybeInt = NOT_AVAILABLE
    total_market_cap: MaybeInt = NOT_AVAILABLE
    best_performer: Optional[Quote] = None
    worst_performer: Optional[Quote] = None


class StockSummary(CamelModel):
    ticker: str
    name: MaybeStr
    price: MaybeFloat
    change: MaybeFloat
    change_percentage: MaybeFloat
    volume: MaybeInt
    market_cap: MaybeInt
    exchange: MaybeStr
    day_low: MaybeFloat
    day_high: MaybeFloat
    year_high: MaybeFloat
    year_low: MaybeFloat
    price_avg50: MaybeFloat = Field(alias="priceAvg50")
    price_avg200: MaybeFloat = Field(alias="priceAvg200")


class ExchangeRateBlock(CamelModel):
    usd_to_brl: float
    usd_to_brl_formatted: str
    timestamp: datetime.datetime
    source: Literal["provider", "fallback"]
    provider: str


class PortfolioDocument(CamelModel):
    success: Literal[True] = True
    timestamp: datetime.datetime
    requested_tickers: list[str]
    stocks_found: int
    stocks: list[StockSummary] = Field(default_factory=list)
    portfolio_metrics: PortfolioMetrics
    exchange_rate: ExchangeRateBlock
    detected_user_language: str
    response_guidelines: dict[str, Any] = Field(default_factory=dict)


class PortfolioFailure(CamelModel):
    success: Literal[False] = False
    error: str
    timestamp: datetime.datetime
    tickers: list[str] = Field(default_factory=list)
    data: list[Any] = Field(default_factory=list)
    summary: None = None
    natural_language_summary: str
