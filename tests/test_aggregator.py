from decimal import Decimal

import pytest

from app.core.exceptions import BalanceComputationError, LedgerValidationError
from app.services.balance.aggregator import (
    Contribution,
    aggregate_ledger,
    contributions_for_expense,
    contributions_for_settlement,
)
from factories import A, B, C, expense, settlement


def test_payer_share_is_not_a_debt():
    exp = expense(1, paid_by=A, shares={A: 30, B: 30, C: 30})

    assert contributions_for_expense(exp) == [
        Contribution(B, A, Decimal("30.00")),
        Contribution(C, A, Decimal("30.00")),
    ]


def test_settlement_is_a_reverse_flow():
    # B paying A back shows up as A "owing" B, which cancels B -> A
    assert contributions_for_settlement(settlement(1, payer=B, payee=A, amount=20)) == [
        Contribution(A, B, Decimal("20.00"))
    ]


def test_deleted_records_are_ignored():
    result = aggregate_ledger(
        [expense(1, A, {B: 10}, deleted=True), expense(2, A, {B: 5})],
        [settlement(3, B, A, 5, deleted=True)],
    )

    assert result == {"USD": [Contribution(B, A, Decimal("5.00"))]}


def test_currencies_are_kept_apart():
    result = aggregate_ledger(
        [expense(1, A, {B: 10}, currency="USD"), expense(2, B, {A: 10}, currency="eur")],
        [],
    )

    assert set(result) == {"USD", "EUR"}
    assert result["USD"] == [Contribution(B, A, Decimal("10.00"))]
    assert result["EUR"] == [Contribution(A, B, Decimal("10.00"))]


def test_split_mismatch_is_surfaced():
    bad = expense(7, A, {A: 50, B: 40}, amount=100)

    with pytest.raises(LedgerValidationError) as exc:
        aggregate_ledger([bad], [])

    assert exc.value.record_id == 7


def test_rounding_difference_within_epsilon_is_accepted():
    exp = expense(1, A, {A: "33.33", B: "33.33", C: "33.33"}, amount=100)

    assert len(contributions_for_expense(exp)) == 2


def test_yen_amounts_use_whole_units():
    exp = expense(1, A, {A: "333.33", B: "333.33", C: "333.34"}, amount=1000, currency="JPY")

    assert [c.amount for c in contributions_for_expense(exp)] == [Decimal("333"), Decimal("333")]


def test_malformed_record_raises_without_handler():
    with pytest.raises(BalanceComputationError):
        aggregate_ledger([expense(1, A, {B: 10}, currency=" ")], [])


def test_malformed_record_goes_to_handler():
    errors = []
    result = aggregate_ledger(
        [expense(1, A, {B: 10}, currency=""), expense(2, A, {C: 10})],
        [],
        on_error=errors.append,
    )

    assert [e.record_id for e in errors] == [1]
    assert errors[0].user_ids == {A, B}
    assert result == {"USD": [Contribution(C, A, Decimal("10.00"))]}


def test_half_cent_split_is_below_threshold():
    exp = expense(1, A, {A: "9.995", B: "0.005"}, amount=10)

    assert contributions_for_expense(exp) == []


def test_half_cent_settlement_is_below_threshold():
    assert contributions_for_settlement(settlement(1, A, B, "0.005")) == []
