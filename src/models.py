from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, getcontext, localcontext
from enum import Enum
from typing import Optional

AMOUNT_PRECISION = Decimal("0.0001")

# Single amounts stay below 10^24, so a balance built from up to 2^32
# transactions needs at most 38 significant digits.
MAX_AMOUNT = Decimal(10) ** 24
LEDGER_DIGITS = 60

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def ledger_context():
    """Decimal context wide enough for any reachable balance."""
    context = getcontext().copy()
    context.prec = LEDGER_DIGITS
    return localcontext(context)


def normalize_amount(amount: Decimal) -> Decimal:
    """Round to 4 decimal places, halves away from zero."""
    with ledger_context():
        return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_UP)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def moves_funds(self) -> bool:
        """Deposits and withdrawals carry an amount and are kept in history."""
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        with ledger_context():
            return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self._adjust(available=amount)

    def debit(self, amount: Decimal) -> None:
        self._adjust(available=amount.copy_negate())

    def hold(self, amount: Decimal) -> None:
        self._adjust(available=amount.copy_negate(), held=amount)

    def release_hold(self, amount: Decimal) -> None:
        self._adjust(available=amount, held=amount.copy_negate())

    def remove_held(self, amount: Decimal) -> None:
        self._adjust(held=amount.copy_negate())

    def lock(self) -> None:
        self.locked = True

    def _adjust(self, available: Decimal = Decimal("0"), held: Decimal = Decimal("0")) -> None:
        with ledger_context():
            self.available = normalize_amount(self.available + available)
            self.held = normalize_amount(self.held + held)


class ProcessingStats:
    """Counters for a single replay run."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0
        self.duplicates = 0

    def record_success(self):
        self.applied += 1

    def record_ignored(self):
        self.ignored += 1

    def record_duplicate(self):
        self.duplicates += 1

    @property
    def total(self) -> int:
        return self.applied + self.ignored + self.duplicates

    def __repr__(self) -> str:
        return f"ProcessingStats(applied={self.applied}, ignored={self.ignored}, duplicates={self.duplicates})"
