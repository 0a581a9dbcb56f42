"""
LedgerConfig — единственная строка конфигурации леджера.
owner_id задаётся при развёртывании и больше не меняется; balance ведётся явно.
"""
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String

from passledger.db.base import Base

SINGLETON_ID = 1


class LedgerConfig(Base):
    __tablename__ = "ledger_config"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    owner_id = Column(String, nullable=False)
    pass_price = Column(BigInteger, nullable=False)             # минимальные единицы валюты
    pass_duration = Column(BigInteger, nullable=False)          # секунды
    balance = Column(BigInteger, nullable=False, default=0)     # принятые цены минус выводы
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
