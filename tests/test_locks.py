import pytest

from app.core.exceptions import LockedRecordError
from app.services.balance.locks import ensure_unlocked, is_locked, referenced_users
from factories import A, B, C, D, expense, settlement


def test_expense_references_payer_participants_and_split_users():
    exp = expense(1, paid_by=A, shares={B: 10}, participants=[B, C])
    assert referenced_users(exp) == {A, B, C}


def test_expense_with_everyone_present_is_unlocked():
    exp = expense(1, paid_by=A, shares={A: 10, B: 10})
    assert not is_locked(exp, [A, B, C])


def test_departed_participant_locks_expense():
    exp = expense(1, paid_by=A, shares={A: 10, B: 10})
    assert is_locked(exp, [A, C])


def test_departed_payer_locks_expense():
    exp = expense(1, paid_by=D, shares={A: 10})
    assert is_locked(exp, [A, B])


def test_settlement_locks_when_payee_left():
    s = settlement(1, payer=A, payee=B, amount=5)
    assert is_locked(s, [A])
    assert not is_locked(s, [A, B])


def test_ensure_unlocked_names_departed_members():
    with pytest.raises(LockedRecordError) as exc:
        ensure_unlocked(expense(9, paid_by=A, shares={B: 1, C: 1}), [A])

    assert exc.value.record_id == 9
    assert exc.value.record_kind == "expense"
    assert exc.value.departed == [B, C]


def test_ensure_unlocked_passes_for_active_members():
    ensure_unlocked(settlement(1, A, B, 5), [A, B])
