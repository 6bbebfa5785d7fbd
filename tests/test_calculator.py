import random
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.core.exceptions import LedgerValidationError
from app.services.balance.calculator import compute_group_balances
from app.services.balance.simplifier import total_transferred
from factories import A, B, C, D, expense, owes, settlement

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def debts(result, currency="USD"):
    return [(d.from_user, d.to_user, d.amount) for d in result.simplified_debts.get(currency, [])]


def compute(expenses=(), settlements=(), members=(A, B, C, D)):
    return compute_group_balances(1, list(expenses), list(settlements), list(members), now=NOW)


def test_empty_ledger():
    result = compute()

    assert result.balances_by_currency == {}
    assert result.simplified_debts == {}
    assert result.last_updated == NOW


def test_single_debt():
    assert debts(compute([owes(1, A, B, 50)])) == [(A, B, Decimal("50.00"))]


def test_reciprocal_debts():
    assert debts(compute([owes(1, A, B, 50), owes(2, B, A, 30)])) == [(A, B, Decimal("20.00"))]


def test_three_way_cycle_cancels():
    result = compute([owes(1, A, B, 30), owes(2, B, C, 30), owes(3, C, A, 30)])

    assert debts(result) == []
    # the pairwise view still shows the cycle
    assert result.balances_by_currency["USD"][A].owes == {B: Decimal("30.00")}
    assert all(b.net_balance == 0 for b in result.balances_by_currency["USD"].values())


def test_chain_is_rerouted():
    result = compute([owes(1, A, B, 100), owes(2, B, C, 50), owes(3, B, D, 50)])

    assert sorted(debts(result)) == [(A, C, Decimal("50.00")), (A, D, Decimal("50.00"))]


def test_settlement_clears_debt():
    result = compute(
        [expense(1, paid_by=A, shares={A: 30, B: 30, C: 30})],
        [settlement(2, payer=B, payee=A, amount=30)],
    )
    usd = result.balances_by_currency["USD"]

    assert usd[B].net_balance == 0
    assert usd[B].owes == {}
    assert debts(result) == [(C, A, Decimal("30.00"))]


def test_currencies_never_net_against_each_other():
    result = compute([owes(1, A, B, 40, currency="USD"), owes(2, B, A, 40, currency="EUR")])

    assert debts(result, "USD") == [(A, B, Decimal("40.00"))]
    assert debts(result, "EUR") == [(B, A, Decimal("40.00"))]


def test_departed_members_still_count():
    result = compute([owes(1, D, A, 25)], members=[A, B])

    assert result.net_balance(D, "USD") == Decimal("-25.00")
    assert set(result.balances_by_currency["USD"]) == {A, B, D}


def test_malformed_record_is_skipped_and_reported():
    result = compute([owes(1, A, B, 10), expense(2, A, {C: 5}, currency="")])

    assert result.skipped_records == [2]
    assert result.net_balance(C, "USD") == 0
    assert debts(result) == [(A, B, Decimal("10.00"))]


def test_split_mismatch_fails_the_computation():
    with pytest.raises(LedgerValidationError):
        compute([expense(1, A, {B: 10}, amount=50)])


def test_recompute_is_idempotent():
    ledger = [owes(1, A, B, "12.50"), owes(2, C, B, 7), owes(3, B, D, "3.33")]

    first = compute(ledger, [settlement(4, C, B, 2)])
    second = compute(ledger, [settlement(4, C, B, 2)])

    assert first == second


def _random_ledger(rng, n):
    users = [A, B, C, D]
    records = []
    for i in range(n):
        payer = rng.choice(users)
        shares = {u: Decimal(rng.randint(1, 9999)) / 100 for u in rng.sample(users, rng.randint(1, 4))}
        records.append(expense(i, payer, shares, currency=rng.choice(["USD", "EUR", "JPY"])))
    return records


@pytest.mark.parametrize("seed", range(20))
def test_zero_sum_and_conservation(seed):
    rng = random.Random(seed)
    result = compute(_random_ledger(rng, 15))

    for currency, per_user in result.balances_by_currency.items():
        nets = [b.net_balance for b in per_user.values()]
        assert abs(sum(nets)) < Decimal("0.01")

        transfers = result.simplified_debts[currency]
        positive = sum(n for n in nets if n > 0)
        assert total_transferred(transfers) == positive
        assert all(t.from_user != t.to_user for t in transfers)
        assert all(t.amount >= Decimal("0.01") for t in transfers)
