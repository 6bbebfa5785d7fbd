from decimal import Decimal

from app.services.balance.aggregator import Contribution
from app.services.balance.matrix import BalanceMatrix, build_balances
from factories import A, B, C, D


def test_reciprocal_debts_cancel():
    matrix = BalanceMatrix("USD").add_all([
        Contribution(A, B, Decimal("50")),
        Contribution(B, A, Decimal("30")),
    ])

    assert matrix.net_pairs() == [(A, B, Decimal("20.00"))]

    balances = matrix.user_balances()
    assert balances[A].owes == {B: Decimal("20.00")}
    assert balances[A].owed_by == {}
    assert balances[B].owed_by == {A: Decimal("20.00")}
    assert balances[A].net_balance == Decimal("-20.00")
    assert balances[B].net_balance == Decimal("20.00")


def test_owes_and_owed_by_mirror_each_other():
    matrix = BalanceMatrix("USD").add_all([
        Contribution(A, B, Decimal("10")),
        Contribution(C, B, Decimal("5")),
        Contribution(B, D, Decimal("7.5")),
    ])

    balances = matrix.user_balances()
    for uid, bal in balances.items():
        for other, amount in bal.owes.items():
            assert balances[other].owed_by[uid] == amount


def test_fully_cancelled_pair_leaves_no_entry():
    balances = BalanceMatrix("USD").add_all([
        Contribution(A, B, Decimal("25")),
        Contribution(B, A, Decimal("25")),
    ]).user_balances()

    assert balances == {}


def test_sub_cent_relation_is_dropped():
    matrix = BalanceMatrix("USD").add_all([
        Contribution(A, B, Decimal("10.004")),
        Contribution(B, A, Decimal("10")),
    ])

    assert matrix.net_pairs() == []


def test_roster_members_get_a_zero_balance():
    result = build_balances({"USD": [Contribution(A, B, Decimal("10"))]}, roster=[A, B, C])

    assert list(result["USD"]) == [A, B, C]
    assert result["USD"][C].net_balance == Decimal("0")
    assert result["USD"][C].owes == {}


def test_net_balances_sum_to_zero_per_currency():
    result = build_balances({
        "USD": [
            Contribution(A, B, Decimal("12.34")),
            Contribution(B, C, Decimal("5.66")),
            Contribution(C, A, Decimal("1.01")),
            Contribution(D, B, Decimal("40")),
        ],
        "EUR": [Contribution(B, A, Decimal("3"))],
    })

    for per_user in result.values():
        total = sum(b.net_balance for b in per_user.values())
        assert abs(total) < Decimal("0.01")


def test_half_cent_net_is_not_rounded_up():
    matrix = BalanceMatrix("USD").add_all([
        Contribution(A, B, Decimal("10.005")),
        Contribution(B, A, Decimal("10")),
    ])

    assert matrix.net_pairs() == []
