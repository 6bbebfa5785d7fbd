import logging
import time
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_active_member_ids
from app.core.exceptions import OutstandingBalanceError
from app.core.metrics import BalanceRecorder, NullRecorder
from app.core.utils import is_settled, to_decimal
from app.models.expense import Expense
from app.models.settlement import Settlement
from app.schemas.balances import GroupBalances
from app.schemas.ledger import (
    ExpenseRecord,
    SettlementRecord,
    SplitLine,
    state_from_deleted_at,
)
from app.services.balance.calculator import compute_group_balances

logger = logging.getLogger(__name__)


def expense_to_record(expense: Expense) -> ExpenseRecord:
    splits = [SplitLine(user_id=s.user_id, amount=to_decimal(s.amount)) for s in expense.splits]
    return ExpenseRecord(
        id=expense.id,
        group_id=expense.group_id,
        currency=expense.currency,
        amount=to_decimal(expense.amount),
        paid_by=expense.paid_by,
        participants=sorted({s.user_id for s in splits}),
        splits=splits,
        state=state_from_deleted_at(expense.deleted_at),
    )


def settlement_to_record(settlement: Settlement) -> SettlementRecord:
    return SettlementRecord(
        id=settlement.id,
        group_id=settlement.group_id,
        currency=settlement.currency,
        amount=to_decimal(settlement.amount),
        payer_id=settlement.payer_id,
        payee_id=settlement.payee_id,
        state=state_from_deleted_at(settlement.deleted_at),
    )


async def load_ledger_snapshot(
    db: AsyncSession,
    group_id: int,
) -> Tuple[List[ExpenseRecord], List[SettlementRecord], set[int]]:
    """Non-deleted expenses and settlements of a group plus its active roster."""
    exp_q = (
        select(Expense)
        .where(Expense.group_id == group_id, Expense.deleted_at.is_(None))
        .order_by(Expense.id)
    )
    expenses = (await db.scalars(exp_q)).all()

    set_q = (
        select(Settlement)
        .where(Settlement.group_id == group_id, Settlement.deleted_at.is_(None))
        .order_by(Settlement.id)
    )
    settlements = (await db.scalars(set_q)).all()

    members = await get_active_member_ids(db, group_id)

    return (
        [expense_to_record(e) for e in expenses],
        [settlement_to_record(s) for s in settlements],
        members,
    )


async def get_group_balances(
    db: AsyncSession,
    group_id: int,
    recorder: BalanceRecorder | None = None,
) -> GroupBalances:
    recorder = recorder or NullRecorder()

    expenses, settlements, members = await load_ledger_snapshot(db, group_id)

    started = time.perf_counter()
    balances = compute_group_balances(group_id, expenses, settlements, members)
    elapsed_ms = (time.perf_counter() - started) * 1000

    recorder.record(
        "compute_group_balances",
        elapsed_ms,
        group_id=group_id,
        expenses=len(expenses),
        settlements=len(settlements),
    )
    return balances


async def get_user_net_balances(db: AsyncSession, group_id: int, user_id: int) -> Dict[str, Decimal]:
    balances = await get_group_balances(db, group_id)
    return {
        currency: balances.net_balance(user_id, currency)
        for currency in balances.balances_by_currency
    }


async def ensure_settled_up(db: AsyncSession, group_id: int, user_id: int) -> None:
    """Raise OutstandingBalanceError unless the user is square in every currency."""
    net = await get_user_net_balances(db, group_id, user_id)
    outstanding = {cur: amt for cur, amt in net.items() if not is_settled(amt)}

    if outstanding:
        logger.info("User %s blocked from leaving group %s: %s", user_id, group_id, outstanding)
        raise OutstandingBalanceError(user_id, outstanding)
