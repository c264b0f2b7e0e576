"""Financial Modeling Prep client for quotes and the USD/BRL rate."""
from __future__ import annotations

import asyncio
import datetime
import time
from collections.abc import Mapping
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from quotedesk.config.settings import Settings
from quotedesk.logger import get_logger
from quotedesk.rounding import as_number, round_financial, round_whole
from quotedesk.schemas.quote import NOT_AVAILABLE, ExchangeRate, Quote
from quotedesk.tickers import normalize_ticker

logger = get_logger(__name__)

_QUOTE_PATH = "/quote/{symbol}"
_FX_PATH = "/fx/{pair}"

# Timeouts, transport failures, non-404 statuses and undecodable bodies.
_TRANSIENT_ERRORS = (httpx.HTTPError, TimeoutError, ValueError)

_MONEY_FIELDS = {
    "price": "price",
    "change": "change",
    "change_percentage": "changesPercentage",
    "day_low": "dayLow",
    "day_high": "dayHigh",
    "year_high": "yearHigh",
    "year_low": "yearLow",
    "price_avg50": "priceAvg50",
    "price_avg200": "priceAvg200",
    "open": "open",
    "previous_close": "previousClose",
    "eps": "eps",
    "pe": "pe",
}
_WHOLE_FIELDS = {
    "volume": "volume",
    "market_cap": "marketCap",
    "avg_volume": "avgVolume",
    "shares_outstanding": "sharesOutstanding",
}
_TEXT_FIELDS = {
    "name": "name",
    "exchange": "exchange",
    "earnings_announcement": "earningsAnnouncement",
}


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    providers = settings.providers
    return httpx.AsyncClient(
        base_url=providers.fmp_base_url,
        headers={"Accept": "application/json", "User-Agent": providers.user_agent},
        timeout=httpx.Timeout(providers.request_timeout_seconds),
    )


def _first_entry(payload: Any) -> Mapping[str, Any]:
    if isinstance(payload, list):
        entry = payload[0] if payload else {}
        return entry if isinstance(entry, Mapping) else {}
    if isinstance(payload, Mapping):
        return payload
    return {}


def map_quote(ticker: str, payload: Mapping[str, Any]) -> Quote:
    """Map one FMP quote object onto :class:`Quote`.

    ``ticker`` is the caller's original ticker; whatever symbol the provider
    echoes back is ignored. Absent, null or non-numeric values become
    ``NOT_AVAILABLE``.
    """
    fields: dict[str, Any] = {}
    for field, key in _MONEY_FIELDS.items():
        value = as_number(payload.get(key))
        fields[field] = NOT_AVAILABLE if value is None else round_financial(value)
    for field, key in _WHOLE_FIELDS.items():
        value = as_number(payload.get(key))
        fields[field] = NOT_AVAILABLE if value is None else round_whole(value)
    for field, key in _TEXT_FIELDS.items():
        value = payload.get(key)
        fields[field] = value if isinstance(value, str) and value else NOT_AVAILABLE

    timestamp = as_number(payload.get("timestamp"))
    fields["timestamp"] = int(timestamp) if timestamp else int(time.time())
    return Quote(ticker=ticker, **fields)


class FinancialModelingPrepClient:
    """Async client for the FMP quote and FX endpoints.

    The HTTP client is injected so a single connection pool is shared by
    every request made during the process lifetime.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        api_key: str | None,
        timeout: float = 20.0,
        max_retries: int = 2,
        retry_backoff_seconds: float = 1.0,
        fx_pair: str = "USDBRL",
        fallback_rate: float = 5.20,
    ) -> None:
        self._http = http
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.fx_pair = fx_pair
        self.fallback_rate = fallback_rate

    @classmethod
    def from_settings(
        cls, http: httpx.AsyncClient, settings: Settings
    ) -> "FinancialModelingPrepClient":
        providers = settings.providers
        return cls(
            http,
            api_key=providers.fmp_api_key,
            timeout=providers.request_timeout_seconds,
            max_retries=providers.max_retries,
            retry_backoff_seconds=providers.retry_backoff_seconds,
            fx_pair=settings.fx.pair,
            fallback_rate=settings.fx.fallback_rate,
        )

    async def _get(self, path: str) -> httpx.Response:
        async with asyncio.timeout(self.timeout):
            return await self._http.get(path, params={"apikey": self.api_key})

    async def _request_quote(self, symbol: str) -> Mapping[str, Any] | None:
        response = await self._get(_QUOTE_PATH.format(symbol=symbol))
        if response.status_code == 404:
            logger.warning("Ticker not found at provider", symbol=symbol)
            return None
        response.raise_for_status()
        if not response.content:
            logger.warning("Empty quote response", symbol=symbol)
            return None

        payload = response.json()
        if payload is None:
            logger.warning("Empty quote response", symbol=symbol)
            return None
        if not isinstance(payload, list):
            raise ValueError(f"unexpected quote payload for {symbol}: {type(payload).__name__}")
        entry = _first_entry(payload)
        if not entry:
            logger.warning("No data found", symbol=symbol)
            return None
        return entry

    async def fetch_quote(self, ticker: str) -> Quote | None:
        """Fetch one quote; ``None`` means not found or retries exhausted."""
        if not self.api_key:
            logger.warning("FMP API key is not configured; skipping quote", ticker=ticker)
            return None

        symbol = normalize_ticker(ticker)

        def _before_sleep(retry_state: RetryCallState) -> None:
            logger.info(
                "Retrying quote request",
                ticker=ticker,
                symbol=symbol,
                attempt=retry_state.attempt_number,
                delay_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
                error=repr(retry_state.outcome.exception()) if retry_state.outcome else None,
            )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries + 1),
                wait=wait_exponential(multiplier=self.retry_backoff_seconds),
                retry=retry_if_exception_type(_TRANSIENT_ERRORS),
                before_sleep=_before_sleep,
                reraise=True,
            ):
                with attempt:
                    logger.debug(
                        "Fetching quote",
                        symbol=symbol,
                        attempt=attempt.retry_state.attempt_number,
                    )
                    entry = await self._request_quote(symbol)
        except _TRANSIENT_ERRORS as exc:
            logger.warning(
                "Quote not available after retries",
                ticker=ticker,
                attempts=self.max_retries + 1,
                error=repr(exc),
            )
            return None

        if entry is None:
            return None

        quote = map_quote(ticker, entry)
        logger.info(
            "Quote fetched",
            ticker=ticker,
            price=quote.price,
            change_percentage=quote.change_percentage,
        )
        return quote

    def _fallback(self) -> ExchangeRate:
        return ExchangeRate(
            usd_to_brl=self.fallback_rate,
            captured_at=datetime.datetime.now(datetime.UTC),
            source="fallback",
        )

    async def fetch_exchange_rate(self) -> ExchangeRate:
        """Fetch the USD/BRL rate, falling back to a constant on any failure."""
        if not self.api_key:
            logger.warning("FMP API key is not configured; using fallback rate")
            return self._fallback()

        try:
            response = await self._get(_FX_PATH.format(pair=self.fx_pair))
            response.raise_for_status()
            payload = response.json()
        except _TRANSIENT_ERRORS as exc:
            logger.warning(
                "Exchange rate request failed; using fallback rate",
                pair=self.fx_pair,
                fallback_rate=self.fallback_rate,
                error=repr(exc),
            )
            return self._fallback()

        price = as_number(_first_entry(payload).get("price"))
        if price is None or price <= 0:
            logger.warning(
                "Exchange rate missing from response; using fallback rate",
                pair=self.fx_pair,
                fallback_rate=self.fallback_rate,
            )
            return self._fallback()

        rate = round_financial(price, 4)
        logger.info("Exchange rate fetched", pair=self.fx_pair, rate=rate)
        return ExchangeRate(
            usd_to_brl=rate,
            captured_at=datetime.datetime.now(datetime.UTC),
            source="provider",
        )
