from decimal import Decimal
from typing import Iterable


class LedgerError(Exception):
    """Base class for balance engine and ledger mutation errors."""


class LedgerValidationError(LedgerError):
    """A ledger record breaks a data-integrity rule (e.g. splits != total)."""

    def __init__(self, message: str, record_id: int | None = None):
        super().__init__(message)
        self.record_id = record_id


class BalanceComputationError(LedgerError):
    """A record could not be folded into the balances at all."""

    def __init__(self, message: str, record_id: int | None = None, user_ids: Iterable[int] = ()):
        super().__init__(message)
        self.record_id = record_id
        self.user_ids = set(user_ids)


class LockedRecordError(LedgerError):
    def __init__(self, record_kind: str, record_id: int, departed: Iterable[int]):
        self.record_kind = record_kind
        self.record_id = record_id
        self.departed = sorted(departed)
        super().__init__(
            f"{record_kind.capitalize()} {record_id} is locked: it involves members who left the group {self.departed}"
        )


class OutstandingBalanceError(LedgerError):
    def __init__(self, user_id: int, outstanding: dict[str, Decimal]):
        self.user_id = user_id
        self.outstanding = outstanding
        summary = ", ".join(f"{cur} {amt}" for cur, amt in sorted(outstanding.items()))
        super().__init__(f"User {user_id} has an outstanding balance ({summary})")
