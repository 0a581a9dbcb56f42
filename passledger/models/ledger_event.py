from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, BigInteger, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB

from passledger.db.base import Base


class LedgerEvent(Base):
    __tablename__ = "ledger_events"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, default=lambda: str(uuid4()))
    event_type = Column(String, nullable=False, index=True)  # PassPurchased / PriceUpdated / DurationUpdated / FundsWithdrawn
    actor_id = Column(String, nullable=True, index=True)
    block_ts = Column(BigInteger, nullable=False)  # время леджера (clock), не wall time БД
    payload = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
