import pytest
from pydantic import ValidationError

from quotedesk.schemas.portfolio import PortfolioRequest
from quotedesk.schemas.quote import NOT_AVAILABLE, Quote, is_available


def test_quote_defaults_to_not_available() -> None:
    quote = Quote(ticker="AAPL", timestamp=1)

    assert quote.price is NOT_AVAILABLE
    assert not is_available(quote.price)
    assert quote.model_dump(mode="json", by_alias=True)["priceAvg200"] == "Not Available"


def test_quote_is_immutable() -> None:
    quote = Quote(ticker="AAPL", price=1.0, timestamp=1)

    with pytest.raises(ValidationError):
        quote.price = 2.0


def test_quote_parses_sentinel_and_null_from_json() -> None:
    quote = Quote.model_validate_json(
        '{"ticker": "PETR4", "name": "Not Available", "price": null, "volume": 10, "timestamp": 5}'
    )

    assert quote.name is NOT_AVAILABLE
    assert quote.price is NOT_AVAILABLE
    assert quote.volume == 10
    assert is_available(quote.volume)


def test_portfolio_request_cleans_tickers() -> None:
    request = PortfolioRequest(tickers=[" aapl", "Petr4 "], userId="abc")

    assert request.tickers == ["AAPL", "PETR4"]
    assert request.user_id == "abc"


@pytest.mark.parametrize("tickers", [[], ["  "], ["AAPL", ""]])
def test_portfolio_request_rejects_blank_input(tickers: list[str]) -> None:
    with pytest.raises(ValidationError):
        PortfolioRequest(tickers=tickers)
