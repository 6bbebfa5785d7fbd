from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List

class SplitInput(BaseModel):
    user_id: int
    amount: Decimal = Field(ge=0)

class ExpenseCreate(BaseModel):
    group_id : int
    currency : str = Field(min_length=3, max_length=3)
    amount : Decimal = Field(gt=0)
    description : str | None = None
    paid_by : int | None = None
    splits: List[SplitInput]

    @field_validator("currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.upper()

class ExpenseUpdate(BaseModel):
    amount : Decimal | None = Field(default=None, gt=0)
    description : str | None = None
    splits: List[SplitInput] | None = None

class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    currency: str
    amount: Decimal
    description: str | None = None
    paid_by: int
    splits : List[SplitInput]
    created_at: datetime | None = None
    is_locked: bool = False
