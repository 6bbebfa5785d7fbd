from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Active(BaseModel):
    kind: Literal["active"] = "active"


class Deleted(BaseModel):
    kind: Literal["deleted"] = "deleted"
    deleted_at: datetime


RecordState = Annotated[Union[Active, Deleted], Field(discriminator="kind")]


def state_from_deleted_at(deleted_at: datetime | None) -> Active | Deleted:
    if deleted_at is None:
        return Active()
    return Deleted(deleted_at=deleted_at)


class SplitLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    amount: Decimal


class _LedgerRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    group_id: int
    currency: str
    amount: Decimal
    state: RecordState = Field(default_factory=Active)

    @field_validator("currency")
    @classmethod
    def normalise_currency(cls, v: str) -> str:
        return v.strip().upper()


class ExpenseRecord(_LedgerRecord):
    paid_by: int
    participants: List[int] = Field(default_factory=list)
    splits: List[SplitLine] = Field(default_factory=list)


class SettlementRecord(_LedgerRecord):
    payer_id: int
    payee_id: int

    @model_validator(mode="after")
    def no_self_payment(self):
        if self.payer_id == self.payee_id:
            raise ValueError("payer and payee must be different users")
        return self


LedgerRecord = Union[ExpenseRecord, SettlementRecord]


def is_active(record: LedgerRecord) -> bool:
    state = record.state
    if isinstance(state, Active):
        return True
    if isinstance(state, Deleted):
        return False
    raise TypeError(f"Unknown record state {state!r}")
