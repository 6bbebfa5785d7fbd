"""
Turns expense and settlement records into directed debt contributions.

A contribution ``(debtor, creditor, amount)`` means "debtor owes creditor
amount" in one currency. Contributions are grouped per currency and never
mixed across currencies.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, NamedTuple

from app.core.exceptions import BalanceComputationError, LedgerValidationError
from app.core.utils import EPSILON, ZERO, is_settled, qround
from app.schemas.ledger import ExpenseRecord, SettlementRecord, is_active

logger = logging.getLogger(__name__)


class Contribution(NamedTuple):
    debtor: int
    creditor: int
    amount: Decimal


ContributionsByCurrency = Dict[str, List[Contribution]]


def _check_record(record, user_ids: Iterable[int]):
    if not record.currency:
        raise BalanceComputationError(
            f"Record {record.id} has no currency", record_id=record.id, user_ids=user_ids
        )
    if record.amount <= ZERO:
        raise BalanceComputationError(
            f"Record {record.id} has a non-positive amount ({record.amount})",
            record_id=record.id,
            user_ids=user_ids,
        )


def validate_splits(expense: ExpenseRecord) -> None:
    total = sum((s.amount for s in expense.splits), ZERO)
    if abs(total - expense.amount) > EPSILON:
        raise LedgerValidationError(
            f"Split total ({total}) must equal expense amount ({expense.amount}) for expense {expense.id}",
            record_id=expense.id,
        )


def contributions_for_expense(expense: ExpenseRecord) -> List[Contribution]:
    involved = {expense.paid_by, *(s.user_id for s in expense.splits)}
    _check_record(expense, involved)

    if any(s.amount < ZERO for s in expense.splits):
        raise BalanceComputationError(
            f"Expense {expense.id} has a negative split", record_id=expense.id, user_ids=involved
        )

    validate_splits(expense)

    out = []
    for split in expense.splits:
        # the payer's own share is never a debt
        if split.user_id == expense.paid_by:
            continue

        if is_settled(split.amount):
            continue

        amount = qround(split.amount, expense.currency)
        if amount == ZERO:
            continue

        out.append(Contribution(split.user_id, expense.paid_by, amount))

    return out


def contributions_for_settlement(settlement: SettlementRecord) -> List[Contribution]:
    _check_record(settlement, (settlement.payer_id, settlement.payee_id))

    if is_settled(settlement.amount):
        return []

    # Paying someone back is a reverse flow: it cancels payer -> payee debt
    amount = qround(settlement.amount, settlement.currency)
    return [Contribution(settlement.payee_id, settlement.payer_id, amount)]


def aggregate_ledger(
    expenses: Iterable[ExpenseRecord],
    settlements: Iterable[SettlementRecord],
    on_error: Callable[[BalanceComputationError], None] | None = None,
) -> ContributionsByCurrency:
    """
    Collect contributions for every active record, keyed by currency.

    Deleted records are ignored. A ``LedgerValidationError`` always
    propagates. A ``BalanceComputationError`` is passed to ``on_error`` when
    one is given (and the record is left out), otherwise it propagates.
    """
    by_currency: ContributionsByCurrency = defaultdict(list)

    def fold(record, build):
        if not is_active(record):
            return
        try:
            contributions = build(record)
        except BalanceComputationError as e:
            if on_error is None:
                raise
            on_error(e)
            return
        by_currency[record.currency].extend(contributions)

    for expense in expenses:
        fold(expense, contributions_for_expense)

    for settlement in settlements:
        fold(settlement, contributions_for_settlement)

    logger.debug(
        "Aggregated %d currencies: %s",
        len(by_currency),
        {cur: len(items) for cur, items in by_currency.items()},
    )
    return dict(by_currency)
