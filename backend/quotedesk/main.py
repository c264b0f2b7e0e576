from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from quotedesk.api.routes import router
from quotedesk.cache import QuoteCache, build_redis_client
from quotedesk.config.settings import Settings, settings as default_settings
from quotedesk.db.audit import PortfolioQueryAudit
from quotedesk.db.session import build_engine, build_session_factory
from quotedesk.logger import configure_logging, get_logger
from quotedesk.providers.fmp import FinancialModelingPrepClient, build_http_client
from quotedesk.services.portfolio import PortfolioService

logger = get_logger(__name__)


@dataclass
class ServiceClients:
    http: httpx.AsyncClient
    redis: Redis
    engine: AsyncEngine

    async def aclose(self) -> None:
        await self.http.aclose()
        await self.redis.aclose()
        await self.engine.dispose()


def build_clients(settings: Settings) -> ServiceClients:
    return ServiceClients(
        http=build_http_client(settings),
        redis=build_redis_client(settings),
        engine=build_engine(settings),
    )


def build_portfolio_service(clients: ServiceClients, settings: Settings) -> PortfolioService:
    return PortfolioService.from_settings(
        FinancialModelingPrepClient.from_settings(clients.http, settings),
        QuoteCache(clients.redis, prefix=settings.cache.key_prefix),
        PortfolioQueryAudit(build_session_factory(clients.engine)),
        settings,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings, service_name="quotedesk")
        clients = build_clients(settings)
        app.state.portfolio_service = build_portfolio_service(clients, settings)
        logger.info("Quotedesk started")
        try:
            yield
        finally:
            await clients.aclose()
            logger.info("Quotedesk stopped")

    app = FastAPI(title="quotedesk", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()
