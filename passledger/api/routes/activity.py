from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from passledger.db.session import get_db
from passledger.schemas.activity import ActivityCountOut, ActivityRecordOut
from passledger.services.activity.service import ActivityLogService

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("", response_model=list[ActivityRecordOut])
def list_activity(
    user_id: str | None = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    svc = ActivityLogService(db)
    if user_id:
        return svc.list_for_user(user_id, limit=limit)
    return svc.list_recent(limit)


@router.get("/count", response_model=ActivityCountOut)
def activity_count(db: Session = Depends(get_db)):
    return ActivityCountOut(count=ActivityLogService(db).count())


@router.get("/{index}", response_model=ActivityRecordOut)
def get_activity(index: int, db: Session = Depends(get_db)):
    record = ActivityLogService(db).get(index)
    if record is None:
        raise HTTPException(status_code=404, detail="Activity record not found")
    return record
