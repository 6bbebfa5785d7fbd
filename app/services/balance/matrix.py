"""
Folds contributions into pairwise owes/owedBy relations and net balances.

Each currency gets its own ``BalanceMatrix`` so amounts in different
currencies can never net against each other.
"""
import logging
from decimal import Decimal
from itertools import combinations
from typing import Dict, Iterable, List, Tuple

from app.core.utils import ZERO, is_settled, qround
from app.schemas.balances import UserBalance
from app.services.balance.aggregator import Contribution, ContributionsByCurrency

logger = logging.getLogger(__name__)


class BalanceMatrix:
    def __init__(self, currency: str):
        self.currency = currency
        # gross[a][b] = everything a has ever owed b
        self._gross: Dict[int, Dict[int, Decimal]] = {}

    def add(self, contribution: Contribution) -> None:
        row = self._gross.setdefault(contribution.debtor, {})
        row[contribution.creditor] = row.get(contribution.creditor, ZERO) + contribution.amount

    def add_all(self, contributions: Iterable[Contribution]) -> "BalanceMatrix":
        for c in contributions:
            self.add(c)
        return self

    def gross(self, debtor: int, creditor: int) -> Decimal:
        return self._gross.get(debtor, {}).get(creditor, ZERO)

    def users(self) -> set[int]:
        found = set(self._gross)
        for row in self._gross.values():
            found.update(row)
        return found

    def net_pairs(self) -> List[Tuple[int, int, Decimal]]:
        """
        Reciprocal cancellation: one ``(debtor, creditor, amount)`` per
        unsettled pair, ordered by (debtor, creditor).
        """
        pairs = []
        for a, b in combinations(sorted(self.users()), 2):
            raw = self.gross(a, b) - self.gross(b, a)
            net = qround(raw, self.currency)
            if is_settled(raw) or is_settled(net):
                continue
            if net > ZERO:
                pairs.append((a, b, net))
            else:
                pairs.append((b, a, -net))

        pairs.sort(key=lambda p: (p[0], p[1]))
        return pairs

    def user_balances(self, roster: Iterable[int] = ()) -> Dict[int, UserBalance]:
        balances: Dict[int, UserBalance] = {}

        def entry(uid: int) -> UserBalance:
            if uid not in balances:
                balances[uid] = UserBalance(user_id=uid, currency=self.currency)
            return balances[uid]

        for uid in roster:
            entry(uid)

        for debtor, creditor, amount in self.net_pairs():
            entry(debtor).owes[creditor] = amount
            entry(creditor).owed_by[debtor] = amount

        for balance in balances.values():
            owed = sum(balance.owed_by.values(), ZERO)
            owing = sum(balance.owes.values(), ZERO)
            balance.net_balance = qround(owed - owing, self.currency)

        return dict(sorted(balances.items()))


def build_balances(
    contributions: ContributionsByCurrency,
    roster: Iterable[int] = (),
) -> Dict[str, Dict[int, UserBalance]]:
    roster = list(roster)
    result = {}

    for currency in sorted(contributions):
        matrix = BalanceMatrix(currency).add_all(contributions[currency])
        result[currency] = matrix.user_balances(roster)

    logger.debug("Built balances for currencies %s", list(result))
    return result
