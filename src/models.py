from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGEDBACK = "chargedback"


class ProcessingResult(Enum):
    APPLIED = "applied"
    IGNORED = "ignored"


class OperationError(Enum):
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    FUNDS_OVERFLOW = "funds_overflow"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    NEGATIVE_AMOUNT = "negative_amount"
    MISSING_AMOUNT = "missing_amount"


class OperationFailed(Exception):
    """A transaction was rejected; `error` tells which rule it broke."""

    def __init__(self, error: OperationError, client_id: int, transaction_id: Optional[int] = None):
        self.error = error
        self.client_id = client_id
        self.transaction_id = transaction_id
        super().__init__(f"{error.value} (client={client_id}, tx={transaction_id})")


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class DisputableTransaction:
    """A settled deposit or withdrawal kept around so it can be disputed later."""

    transaction_type: TransactionType
    client_id: int
    amount: Decimal
    dispute_state: DisputeState = DisputeState.NORMAL


class AccountSnapshot(NamedTuple):
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.ignored = 0
        self.failed = 0
        self.skipped = 0

    def record_success(self):
        self.processed += 1

    def record_ignored(self):
        self.ignored += 1

    def record_failure(self):
        self.failed += 1

    def record_skipped(self):
        self.skipped += 1

    def __str__(self) -> str:
        return f"Processed: {self.processed}, Ignored: {self.ignored}, Failed: {self.failed}, Skipped: {self.skipped}"
