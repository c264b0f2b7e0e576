# backend/quotedesk/db/models.py

import datetime
import uuid

from sqlalchemy import Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class PortfolioQuery(Base):
    __tablename__ = "PortfolioQuery"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tickers = Column(JSONB, nullable=False)
    timestamp = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)
    # Full quote payload, not the trimmed document sent to the caller
    data = Column(JSONB, nullable=False)
    user_id = Column("userId", UUID(as_uuid=True), nullable=False, index=True)

    def __repr__(self):
        return f"<PortfolioQuery(user_id='{self.user_id}', tickers={self.tickers})>"
