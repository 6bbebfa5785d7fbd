from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from pydantic import BaseModel, Field, field_serializer


class UserBalance(BaseModel):
    user_id: int
    currency: str
    owes: Dict[int, Decimal] = Field(default_factory=dict)
    owed_by: Dict[int, Decimal] = Field(default_factory=dict)
    net_balance: Decimal = Decimal("0")

    @field_serializer("net_balance")
    def _net_as_str(self, v: Decimal) -> str:
        return str(v)

    @field_serializer("owes", "owed_by")
    def _map_as_str(self, v: Dict[int, Decimal]) -> Dict[int, str]:
        return {uid: str(amt) for uid, amt in v.items()}


class SimplifiedDebt(BaseModel):
    from_user: int
    to_user: int
    amount: Decimal
    currency: str

    @field_serializer("amount")
    def _amount_as_str(self, v: Decimal) -> str:
        return str(v)


class GroupBalances(BaseModel):
    group_id: int
    balances_by_currency: Dict[str, Dict[int, UserBalance]] = Field(default_factory=dict)
    simplified_debts: Dict[str, List[SimplifiedDebt]] = Field(default_factory=dict)
    last_updated: datetime
    # ids of records left out because they could not be aggregated
    skipped_records: List[int] = Field(default_factory=list)

    def net_balance(self, user_id: int, currency: str) -> Decimal:
        balance = self.balances_by_currency.get(currency, {}).get(user_id)
        return balance.net_balance if balance else Decimal("0")


class MyBalanceOut(BaseModel):
    user_id: int
    net: Dict[str, str]
