import logging
from datetime import datetime, timezone
from typing import Iterable, List

from app.core.exceptions import BalanceComputationError
from app.schemas.balances import GroupBalances
from app.schemas.ledger import ExpenseRecord, SettlementRecord
from app.services.balance.aggregator import aggregate_ledger
from app.services.balance.matrix import build_balances
from app.services.balance.simplifier import simplify_all_currencies

logger = logging.getLogger(__name__)


def compute_group_balances(
    group_id: int,
    expenses: Iterable[ExpenseRecord],
    settlements: Iterable[SettlementRecord],
    active_members: Iterable[int],
    now: datetime | None = None,
) -> GroupBalances:
    """
    Recompute a group's balances from a ledger snapshot.

    Pure: same snapshot (and `now`) in, same result out. Records that cannot
    be aggregated are logged and left out so the rest of the group still gets
    balances; split-total mismatches are raised to the caller.
    """
    skipped: List[int] = []

    def skip(err: BalanceComputationError):
        logger.warning(
            "Group %s: leaving record %s out of balances (users %s): %s",
            group_id, err.record_id, sorted(err.user_ids), err,
        )
        if err.record_id is not None:
            skipped.append(err.record_id)

    contributions = aggregate_ledger(expenses, settlements, on_error=skip)
    balances = build_balances(contributions, roster=active_members)
    debts = simplify_all_currencies(balances)

    return GroupBalances(
        group_id=group_id,
        balances_by_currency=balances,
        simplified_debts=debts,
        last_updated=now or datetime.now(timezone.utc),
        skipped_records=skipped,
    )
