from pydantic import BaseModel, ConfigDict
from datetime import datetime

class GroupCreate(BaseModel):
    name: str

class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_by: int

class GroupMemberOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    group_id: int
    joined_at: datetime | None = None
    left_at: datetime | None = None
