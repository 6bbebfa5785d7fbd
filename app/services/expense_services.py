import logging
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.models.expense import Expense
from app.models.expense_split import ExpenseSplit
from app.schemas.expense import ExpenseCreate, ExpenseOut, ExpenseUpdate, SplitInput
from app.schemas.ledger import ExpenseRecord, SplitLine
from app.core.dependencies import check_group_membership, get_active_member_ids
from app.core.exceptions import LedgerValidationError
from app.core.utils import fits_minor_unit, qround
from app.services.balance.aggregator import validate_splits
from app.services.balance.locks import ensure_unlocked, is_locked
from app.services.balance_services import expense_to_record
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def _check_split_users(splits, payer: int, active: set[int]):
    user_ids = [s.user_id for s in splits]

    if not user_ids:
        raise HTTPException(400, "An expense needs at least one split")

    if len(user_ids) != len(set(user_ids)):
        raise HTTPException(400, "Duplicate users found in splits")

    if payer not in active:
        raise HTTPException(400, "Payer is not a member of the group")

    if not set(user_ids) <= active:
        raise HTTPException(400, "Some users in split are not group members")


def _validate_totals(currency: str, amount, splits):
    # stored values are the given values: rounding here could break the split total
    for value in (amount, *(s.amount for s in splits)):
        if not fits_minor_unit(value, currency):
            raise LedgerValidationError(
                f"Amount {value} has more decimal places than {currency} allows"
            )

    # same rule the balance engine applies, checked before anything is stored
    validate_splits(ExpenseRecord(
        id=0,
        group_id=0,
        currency=currency,
        amount=amount,
        paid_by=0,
        splits=[SplitLine(user_id=s.user_id, amount=s.amount) for s in splits],
    ))


def _to_out(expense: Expense, active: set[int]) -> ExpenseOut:
    return ExpenseOut(
        id=expense.id,
        group_id=expense.group_id,
        currency=expense.currency,
        amount=qround(expense.amount, expense.currency),
        description=expense.description,
        paid_by=expense.paid_by,
        splits=[
            SplitInput(user_id=s.user_id, amount=qround(s.amount, expense.currency))
            for s in sorted(expense.splits, key=lambda s: s.user_id)
        ],
        created_at=expense.created_at,
        is_locked=is_locked(expense_to_record(expense), active),
    )


async def _fetch_live_expense(db: AsyncSession, expense_id: int) -> Expense:
    q = (
        select(Expense)
        .where(Expense.id == expense_id, Expense.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    expense = (await db.execute(q)).scalar_one_or_none()

    if not expense:
        raise HTTPException(404, "Expense not found")

    return expense


async def create_expense(db: AsyncSession, data: ExpenseCreate, user_id: int) -> ExpenseOut:
    await check_group_membership(db, data.group_id, user_id)
    active = await get_active_member_ids(db, data.group_id)

    payer = data.paid_by or user_id
    _check_split_users(data.splits, payer, active)
    _validate_totals(data.currency, data.amount, data.splits)

    expense = Expense(
        group_id=data.group_id,
        paid_by=payer,
        currency=data.currency,
        amount=qround(data.amount, data.currency),
        description=data.description,
        splits=[
            ExpenseSplit(user_id=s.user_id, amount=qround(s.amount, data.currency))
            for s in data.splits
        ],
    )
    db.add(expense)
    await db.commit()

    logger.info("Expense %s created in group %s by user %s", expense.id, data.group_id, user_id)

    expense = await _fetch_live_expense(db, expense.id)
    return _to_out(expense, active)


async def get_expense_by_id(db: AsyncSession, expense_id: int, user_id: int) -> ExpenseOut:
    expense = await _fetch_live_expense(db, expense_id)
    await check_group_membership(db, expense.group_id, user_id)

    active = await get_active_member_ids(db, expense.group_id)
    return _to_out(expense, active)


async def list_group_expenses(db: AsyncSession, group_id: int, user_id: int) -> list[ExpenseOut]:
    await check_group_membership(db, group_id, user_id)
    active = await get_active_member_ids(db, group_id)

    q = (
        select(Expense)
        .where(Expense.group_id == group_id, Expense.deleted_at.is_(None))
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    expenses = (await db.scalars(q)).all()

    return [_to_out(e, active) for e in expenses]


async def update_expense(db: AsyncSession, expense_id: int, data: ExpenseUpdate, user_id: int) -> ExpenseOut:
    expense = await _fetch_live_expense(db, expense_id)
    await check_group_membership(db, expense.group_id, user_id)

    active = await get_active_member_ids(db, expense.group_id)
    ensure_unlocked(expense_to_record(expense), active)

    amount = data.amount if data.amount is not None else expense.amount

    if data.splits is not None:
        splits = data.splits
        _check_split_users(splits, expense.paid_by, active)
    else:
        splits = [SplitInput(user_id=s.user_id, amount=s.amount) for s in expense.splits]

    _validate_totals(expense.currency, amount, splits)

    expense.amount = qround(amount, expense.currency)
    if data.description is not None:
        expense.description = data.description

    if data.splits is not None:
        # old rows must be gone before re-inserting the same (expense, user) pairs
        expense.splits.clear()
        await db.flush()
        expense.splits = [
            ExpenseSplit(user_id=s.user_id, amount=qround(s.amount, expense.currency))
            for s in splits
        ]

    await db.commit()
    logger.info("Expense %s updated by user %s", expense_id, user_id)

    expense = await _fetch_live_expense(db, expense_id)
    return _to_out(expense, active)


async def delete_expense(db: AsyncSession, expense_id: int, user_id: int):
    expense = await _fetch_live_expense(db, expense_id)
    await check_group_membership(db, expense.group_id, user_id)

    active = await get_active_member_ids(db, expense.group_id)
    ensure_unlocked(expense_to_record(expense), active)

    expense.deleted_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info("Expense %s deleted by user %s", expense_id, user_id)
    return {"status": "deleted"}
