from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from decimal import Decimal

class SettlementCreate(BaseModel):
    group_id: int
    payee_id: int
    payer_id: int | None = None
    currency: str = Field(min_length=3, max_length=3)
    amount: Decimal = Field(gt=0)
    note: str | None = None

    @field_validator("currency")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.upper()

class SettlementUpdate(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0)
    note: str | None = None

class SettlementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    payer_id: int
    payee_id: int
    currency: str
    amount: Decimal
    note: str | None = None
    created_at: datetime | None = None
    is_locked: bool = False
