from pydantic import BaseModel


class ActivityRecordOut(BaseModel):
    id: int
    user_id: str
    action: str
    amount: int
    timestamp: int

    model_config = {"from_attributes": True}


class ActivityCountOut(BaseModel):
    count: int
