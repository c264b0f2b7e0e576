from __future__ import annotations

import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Unavailable(Enum):
    """Marker for a quote field the provider did not supply."""

    NOT_AVAILABLE = "Not Available"


NOT_AVAILABLE = Unavailable.NOT_AVAILABLE


def _coerce_unavailable(value: Any) -> Any:
    if value is None or value == NOT_AVAILABLE.value:
        return NOT_AVAILABLE
    return value


MaybeFloat = Annotated[Unavailable | float, BeforeValidator(_coerce_unavailable)]
MaybeInt = Annotated[Unavailable | int, BeforeValidator(_coerce_unavailable)]
MaybeStr = Annotated[Unavailable | str, BeforeValidator(_coerce_unavailable)]


def is_available(value: Any) -> bool:
    return value is not NOT_AVAILABLE


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Quote(CamelModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    name: MaybeStr = NOT_AVAILABLE
    price: MaybeFloat = NOT_AVAILABLE
    change: MaybeFloat = NOT_AVAILABLE
    change_percentage: MaybeFloat = NOT_AVAILABLE
    volume: MaybeInt = NOT_AVAILABLE
    market_cap: MaybeInt = NOT_AVAILABLE
    day_low: MaybeFloat = NOT_AVAILABLE
    day_high: MaybeFloat = NOT_AVAILABLE
    year_high: MaybeFloat = NOT_AVAILABLE
    year_low: MaybeFloat = NOT_AVAILABLE
    price_avg50: MaybeFloat = Field(default=NOT_AVAILABLE, alias="priceAvg50")
    price_avg200: MaybeFloat = Field(default=NOT_AVAILABLE, alias="priceAvg200")
    avg_volume: MaybeInt = NOT_AVAILABLE
    exchange: MaybeStr = NOT_AVAILABLE
    open: MaybeFloat = NOT_AVAILABLE
    previous_close: MaybeFloat = NOT_AVAILABLE
    eps: MaybeFloat = NOT_AVAILABLE
    pe: MaybeFloat = NOT_AVAILABLE
    earnings_announcement: MaybeStr = NOT_AVAILABLE
    shares_outstanding: MaybeInt = NOT_AVAILABLE
    timestamp: int


class ExchangeRate(BaseModel):
    usd_to_brl: float
    captured_at: datetime.datetime
    source: Literal["provider", "fallback"]


class CacheEntry(BaseModel):
    tickers: list[str]
    timestamp: datetime.datetime
    data: list[Quote] = Field(default_factory=list)
