from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from quotedesk.schemas.portfolio import PortfolioRequest
from quotedesk.services.portfolio import TOOL_DESCRIPTION, TOOL_NAME, PortfolioService

router = APIRouter()


def get_portfolio_service(request: Request) -> PortfolioService:
    return request.app.state.portfolio_service


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/portfolio/tool")
def portfolio_tool() -> dict[str, Any]:
    return {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "inputSchema": PortfolioRequest.model_json_schema(by_alias=True),
    }


@router.post("/portfolio/quotes")
async def portfolio_quotes_endpoint(
    payload: Any = Body(default=None),
    service: PortfolioService = Depends(get_portfolio_service),
) -> dict[str, Any]:
    # Validation happens in the service so bad input still yields a document.
    body = payload if isinstance(payload, dict) else {}
    return await service.get_portfolio(
        body.get("tickers"),
        user_id=body.get("userId", body.get("user_id")),
        user_language=body.get("userLanguage", body.get("user_language")),
    )
