"""
ActivityLog — append-only журнал действий (user, action, amount, timestamp).
На валидность пассов не влияет; леджер пишет сюда после коммита операции.
"""
from sqlalchemy.orm import Session

from passledger.models.activity_record import ActivityRecord


class ActivityLogService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, user_id: str, action: str, amount: int, timestamp: int) -> ActivityRecord:
        entry = ActivityRecord(
            user_id=user_id,
            action=action,
            amount=amount,
            timestamp=timestamp,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def count(self) -> int:
        return self.db.query(ActivityRecord).count()

    def get(self, index: int) -> ActivityRecord | None:
        """Record by insertion index (0-based)."""
        if index < 0:
            return None
        return (
            self.db.query(ActivityRecord)
            .order_by(ActivityRecord.id)
            .offset(index)
            .limit(1)
            .one_or_none()
        )

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[ActivityRecord]:
        """Records of one user in insertion order; limit keeps the first N."""
        query = (
            self.db.query(ActivityRecord)
            .filter(ActivityRecord.user_id == user_id)
            .order_by(ActivityRecord.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def list_recent(self, limit: int = 50) -> list[ActivityRecord]:
        return (
            self.db.query(ActivityRecord)
            .order_by(ActivityRecord.id.desc())
            .limit(limit)
            .all()
        )
