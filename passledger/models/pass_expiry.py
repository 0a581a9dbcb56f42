from sqlalchemy import BigInteger, Column, String

from passledger.db.base import Base


class PassExpiry(Base):
    __tablename__ = "pass_expiry"

    user_id = Column(String, primary_key=True)
    expires_at = Column(BigInteger, nullable=False, default=0)  # unix seconds; строки не удаляются
