# backend/quotedesk/db/session.py

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from quotedesk.config.settings import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(settings.database_url, echo=False)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(autoflush=False, bind=engine)
