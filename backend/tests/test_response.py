import datetime

from quotedesk.portfolio.metrics import aggregate_quotes
from quotedesk.portfolio.response import compose_failure, compose_response, format_brl
from quotedesk.schemas.quote import ExchangeRate, Quote


def build_rate(source: str = "provider") -> ExchangeRate:
    return ExchangeRate(
        usd_to_brl=5.4321,
        captured_at=datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.UTC),
        source=source,
    )


def test_format_brl_uses_brazilian_separators() -> None:
    assert format_brl(5.2) == "R$ 5,20"
    assert format_brl(1234.5) == "R$ 1.234,50"


def test_success_document_shape() -> None:
    quotes = [
        Quote(ticker="AAPL", price=150.25, change_percentage=1.5, eps=6.1, timestamp=1),
        Quote(ticker="PETR4", price=38.1, change_percentage=-0.4, timestamp=2),
    ]

    document = compose_response(
        ["AAPL", "PETR4"], quotes, aggregate_quotes(quotes), build_rate(), "pt"
    )

    assert list(document) == [
        "success",
        "timestamp",
        "requestedTickers",
        "stocksFound",
        "stocks",
        "portfolioMetrics",
        "exchangeRate",
        "detectedUserLanguage",
        "responseGuidelines",
    ]
    assert document["success"] is True
    assert document["stocksFound"] == 2
    assert document["stocks"][0]["ticker"] == "AAPL"
    assert document["stocks"][0]["priceAvg50"] == "Not Available"
    assert "eps" not in document["stocks"][0]
    assert document["portfolioMetrics"]["totalValue"] == 188.35
    assert document["portfolioMetrics"]["totalVolume"] == "Not Available"
    assert document["portfolioMetrics"]["bestPerformer"]["ticker"] == "AAPL"
    assert document["portfolioMetrics"]["worstPerformer"]["ticker"] == "PETR4"
    assert document["exchangeRate"]["usdToBrl"] == 5.4321
    assert document["exchangeRate"]["usdToBrlFormatted"] == "R$ 5,43"
    assert document["exchangeRate"]["source"] == "provider"
    assert document["detectedUserLanguage"] == "pt"
    assert "PORTUGUÊS" in document["responseGuidelines"]["language_detection_hint"]


def test_language_hint_defaults_to_unknown() -> None:
    document = compose_response([], [], aggregate_quotes([]), build_rate("fallback"))

    assert document["detectedUserLanguage"] == "unknown"
    assert document["exchangeRate"]["source"] == "fallback"
    assert document["portfolioMetrics"]["bestPerformer"] is None


def test_failure_document_shape() -> None:
    document = compose_failure(["AAPL"])

    assert document["success"] is False
    assert document["tickers"] == ["AAPL"]
    assert document["data"] == []
    assert document["summary"] is None
    assert document["error"] == "Internal error processing portfolio"
    assert document["naturalLanguageSummary"].startswith("Sorry")
    assert "stocks" not in document
