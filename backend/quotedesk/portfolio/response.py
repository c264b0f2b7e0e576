from __future__ import annotations

import datetime
from collections.abc import Sequence
from typing import Any

from quotedesk.schemas.portfolio import (
    ExchangeRateBlock,
    PortfolioDocument,
    PortfolioFailure,
    PortfolioMetrics,
    StockSummary,
)
from quotedesk.schemas.quote import ExchangeRate, Quote

PROVIDER_NAME = "Financial Modeling Prep API"
INTERNAL_ERROR = "Internal error processing portfolio"
NO_DATA_ERROR = "No quote data found for the requested tickers"
FAILURE_MESSAGE = (
    "Sorry, it was not possible to get your portfolio data at the moment. "
    "Please try again in a few moments."
)
NO_DATA_MESSAGE = (
    "None of the requested tickers returned quote data. "
    "Please check the symbols and try again."
)

# Read by the LLM that renders the document; kept in the operators' language.
_RESPONSE_GUIDELINES: dict[str, Any] = {
    "CRITICAL_LANGUAGE_RULE": (
        "RESPONDER SEMPRE NO MESMO IDIOMA DA PERGUNTA DO USUÁRIO - Este é um requisito absoluto!"
    ),
    "currency_display": (
        "Ações brasileiras: mostrar em BRL primeiro. Ações americanas: mostrar em USD primeiro. "
        "Fazer conversões conforme idioma da pergunta."
    ),
    "no_assumptions": (
        "JAMAIS presumir quantidades de ativos. "
        "JAMAIS calcular net worth sem dados explícitos de quantidade."
    ),
    "response_scope": "Responder APENAS o que foi perguntado especificamente",
    "analysis_suggestions": "Pode sugerir análises adicionais, mas sem assumir dados não fornecidos",
    "currency_examples": {
        "pt_question_us_stock": "AAPL está a $150.25 (R$ 781,30 no câmbio atual de R$ 5,20)",
        "en_question_br_stock": "BBAS3.SA is at R$ 43.94 ($8.45 USD at current rate of R$ 5.20 per dollar)",
        "pt_question_br_stock": "BBAS3 está a R$ 43.94",
        "en_question_us_stock": "AAPL is at $150.25",
    },
    "exchange_rate_display": (
        "Sempre usar a versão formatada: usdToBrlFormatted (ex: R$ 5,20) ao invés do número bruto"
    ),
}


def format_brl(value: float) -> str:
    """Format ``value`` the pt-BR way, e.g. ``R$ 1.234,50``."""
    formatted = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {formatted}"


def _language_hint(user_language: str | None) -> str:
    if not user_language:
        return "Idioma não detectado - inferir da pergunta"
    language = "PORTUGUÊS" if user_language == "pt" else "ENGLISH"
    return f"Usuário perguntou em: {language}"


def response_guidelines(user_language: str | None) -> dict[str, Any]:
    guidelines = dict(_RESPONSE_GUIDELINES)
    guidelines["language_detection_hint"] = _language_hint(user_language)
    return guidelines


def compose_response(
    requested: Sequence[str],
    quotes: Sequence[Quote],
    metrics: PortfolioMetrics,
    rate: ExchangeRate,
    user_language: str | None = None,
) -> dict[str, Any]:
    now = datetime.datetime.now(datetime.UTC)
    document = PortfolioDocument(
        timestamp=now,
        requested_tickers=list(requested),
        stocks_found=len(quotes),
        stocks=[StockSummary.model_validate(quote.model_dump()) for quote in quotes],
        portfolio_metrics=metrics,
        exchange_rate=ExchangeRateBlock(
            usd_to_brl=rate.usd_to_brl,
            usd_to_brl_formatted=format_brl(rate.usd_to_brl),
            timestamp=rate.captured_at,
            source=rate.source,
            provider=PROVIDER_NAME,
        ),
        detected_user_language=user_language or "unknown",
        response_guidelines=response_guidelines(user_language),
    )
    return document.model_dump(mode="json", by_alias=True)


def compose_failure(
    tickers: Sequence[str],
    error: str = INTERNAL_ERROR,
    message: str = FAILURE_MESSAGE,
) -> dict[str, Any]:
    failure = PortfolioFailure(
        error=error,
        timestamp=datetime.datetime.now(datetime.UTC),
        tickers=list(tickers),
        natural_language_summary=message,
    )
    return failure.model_dump(mode="json", by_alias=True)
