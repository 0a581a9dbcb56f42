from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String

from passledger.db.base import Base


class ActivityRecord(Base):
    __tablename__ = "activity_records"

    # id = порядок добавления; записи только добавляются
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False)
    amount = Column(BigInteger, nullable=False, default=0)
    timestamp = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
