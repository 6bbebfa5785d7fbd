from decimal import Decimal
from typing import Dict, List, Mapping
import logging

from app.core.utils import ZERO, is_settled, qround
from app.schemas.balances import SimplifiedDebt, UserBalance

logger = logging.getLogger(__name__)


def _by_size(entry):
    # largest first; equal amounts go to the lower user id
    uid, amount = entry
    return (-amount, uid)


def simplify_debts(net_map: Mapping[int, Decimal], currency: str) -> List[SimplifiedDebt]:
    """
    Greedy settlement plan for one currency.

    Largest debtor pays largest creditor until one side is cleared, then the
    remaining parties are re-sorted. Only net balances matter here, so the
    pairwise routes that produced them are discarded (a three way cycle of
    equal debts needs no payment at all).
    """
    creditors = []
    debtors = []

    for uid, bal in net_map.items():
        if is_settled(bal):
            continue
        # whole minor units, so every match clears at least one side exactly
        bal = qround(bal, currency)
        if bal == ZERO:
            continue
        if bal > ZERO:
            creditors.append([uid, bal])
        else:
            debtors.append([uid, -bal])

    transfers: List[SimplifiedDebt] = []

    while creditors and debtors:
        creditors.sort(key=_by_size)
        debtors.sort(key=_by_size)

        cred_id, cred_amt = creditors[0]
        debt_id, debt_amt = debtors[0]

        pay_amt = min(cred_amt, debt_amt)

        if not is_settled(pay_amt):
            transfers.append(SimplifiedDebt(
                from_user=debt_id,
                to_user=cred_id,
                amount=pay_amt,
                currency=currency,
            ))

        creditors[0][1] = cred_amt - pay_amt
        debtors[0][1] = debt_amt - pay_amt

        creditors = [c for c in creditors if not is_settled(c[1])]
        debtors = [d for d in debtors if not is_settled(d[1])]

    return transfers


def simplify_all_currencies(
    balances_by_currency: Mapping[str, Mapping[int, UserBalance]],
) -> Dict[str, List[SimplifiedDebt]]:
    plan = {}
    for currency in sorted(balances_by_currency):
        net = {uid: b.net_balance for uid, b in balances_by_currency[currency].items()}
        plan[currency] = simplify_debts(net, currency)
        logger.debug("%s: %d transfers", currency, len(plan[currency]))
    return plan


def total_transferred(transfers: List[SimplifiedDebt]) -> Decimal:
    return sum((t.amount for t in transfers), ZERO)
