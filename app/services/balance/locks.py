"""
Departed-member locking.

Once a record mentions someone who is no longer an active member it becomes
read-only. It still counts towards balances.
"""
from typing import Iterable, Set

from app.core.exceptions import LockedRecordError
from app.schemas.ledger import ExpenseRecord, LedgerRecord, SettlementRecord


def referenced_users(record: LedgerRecord) -> Set[int]:
    if isinstance(record, ExpenseRecord):
        return {record.paid_by, *record.participants, *(s.user_id for s in record.splits)}
    if isinstance(record, SettlementRecord):
        return {record.payer_id, record.payee_id}
    raise TypeError(f"Not a ledger record: {type(record).__name__}")


def departed_users(record: LedgerRecord, active_members: Iterable[int]) -> Set[int]:
    return referenced_users(record) - set(active_members)


def is_locked(record: LedgerRecord, active_members: Iterable[int]) -> bool:
    return bool(departed_users(record, active_members))


def ensure_unlocked(record: LedgerRecord, active_members: Iterable[int]) -> None:
    departed = departed_users(record, active_members)
    if departed:
        kind = "expense" if isinstance(record, ExpenseRecord) else "settlement"
        raise LockedRecordError(kind, record.id, departed)
