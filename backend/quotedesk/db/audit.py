from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import async_sessionmaker

from quotedesk.db.models import PortfolioQuery
from quotedesk.logger import get_logger
from quotedesk.schemas.quote import Quote

logger = get_logger(__name__)


class PortfolioQueryAudit:
    """Write-only sink recording each portfolio query a user makes."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def record(
        self, user_id: str, tickers: Sequence[str], quotes: Sequence[Quote]
    ) -> None:
        row = PortfolioQuery(
            user_id=uuid.UUID(user_id),
            tickers=list(tickers),
            data=[quote.model_dump(mode="json", by_alias=True) for quote in quotes],
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
        logger.info("Portfolio query persisted", user_id=user_id, count=len(quotes))
