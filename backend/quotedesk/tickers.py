from __future__ import annotations

import re
from collections.abc import Iterable

BRAZIL_SUFFIX = ".SA"

_FOREIGN_RE = re.compile(r"[A-Z0-9]{4}")
_BRAZIL_RE = re.compile(r"[A-Z0-9]{4}\d{1,2}")


def clean_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def unique_tickers(tickers: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(tickers))


def normalize_ticker(ticker: str) -> str:
    """Return the symbol the quote provider expects for ``ticker``.

    Four alphanumerics (AAPL, MSFT, B3SA) pass through unchanged. Four
    alphanumerics followed by one or two digits (PETR4, TAEE11, B3SA3) are
    B3 listings and get the ``.SA`` suffix. Everything else, including
    already-suffixed symbols, passes through unchanged.
    """
    if _FOREIGN_RE.fullmatch(ticker):
        return ticker
    if _BRAZIL_RE.fullmatch(ticker) and "." not in ticker:
        return f"{ticker}{BRAZIL_SUFFIX}"
    return ticker
