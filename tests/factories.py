from datetime import datetime, timezone
from decimal import Decimal

from app.schemas.ledger import ExpenseRecord, SettlementRecord, SplitLine, state_from_deleted_at

A, B, C, D = 1, 2, 3, 4


def expense(id, paid_by, shares, currency="USD", amount=None, deleted=False, participants=None):
    splits = [SplitLine(user_id=uid, amount=Decimal(str(amt))) for uid, amt in shares.items()]
    total = Decimal(str(amount)) if amount is not None else sum(s.amount for s in splits)
    return ExpenseRecord(
        id=id,
        group_id=1,
        currency=currency,
        amount=total,
        paid_by=paid_by,
        participants=participants if participants is not None else sorted(shares),
        splits=splits,
        state=state_from_deleted_at(datetime.now(timezone.utc) if deleted else None),
    )


def owes(id, debtor, creditor, amount, currency="USD"):
    """Expense paid by `creditor` that is entirely `debtor`'s share."""
    return expense(id, paid_by=creditor, shares={debtor: amount}, currency=currency)


def settlement(id, payer, payee, amount, currency="USD", deleted=False):
    return SettlementRecord(
        id=id,
        group_id=1,
        currency=currency,
        amount=Decimal(str(amount)),
        payer_id=payer,
        payee_id=payee,
        state=state_from_deleted_at(datetime.now(timezone.utc) if deleted else None),
    )
