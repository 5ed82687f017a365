from decimal import Decimal

from amount import AmountOverflow, ZERO, checked_add, checked_sub
from models import AccountSnapshot, OperationError, OperationFailed


class Account:
    """
    Balances and lock flag of a single client.
    Every operation either commits fully or raises OperationFailed leaving state untouched.
    """

    def __init__(self, client_id: int):
        self.client_id = client_id
        self._available = ZERO
        self._held = ZERO
        self._locked = False

    @property
    def available(self) -> Decimal:
        return self._available

    @property
    def held(self) -> Decimal:
        return self._held

    @property
    def total(self) -> Decimal:
        return checked_add(self._available, self._held)

    @property
    def locked(self) -> bool:
        return self._locked

    def deposit(self, amount: Decimal) -> None:
        self._ensure_unlocked()
        available = self._add(self._available, amount)
        self._add(self.total, amount)
        self._available = available

    def withdraw(self, amount: Decimal) -> None:
        self._ensure_unlocked()
        self._ensure_available(amount)
        self._available = self._sub(self._available, amount)

    def hold(self, amount: Decimal) -> None:
        """Move funds from available to held; lock state is irrelevant."""
        self._ensure_available(amount)
        available = self._sub(self._available, amount)
        held = self._add(self._held, amount)
        self._available, self._held = available, held

    def release(self, amount: Decimal) -> None:
        """Move funds from held back to available."""
        if amount > self._held:
            raise OperationFailed(OperationError.INSUFFICIENT_FUNDS, self.client_id)
        held = self._sub(self._held, amount)
        available = self._add(self._available, amount)
        self._available, self._held = available, held

    def forfeit_and_lock(self, amount: Decimal) -> None:
        """Remove held funds for good and freeze the account."""
        if amount > self._held:
            raise OperationFailed(OperationError.INSUFFICIENT_FUNDS, self.client_id)
        self._held = self._sub(self._held, amount)
        self._locked = True

    def restore(self, amount: Decimal) -> None:
        """Give back funds taken by a reversed withdrawal."""
        available = self._add(self._available, amount)
        self._add(self.total, amount)
        self._available = available

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self._available,
            held=self._held,
            total=self.total,
            locked=self._locked,
        )

    def _ensure_unlocked(self) -> None:
        if self._locked:
            raise OperationFailed(OperationError.ACCOUNT_LOCKED, self.client_id)

    def _ensure_available(self, amount: Decimal) -> None:
        if amount > self._available:
            raise OperationFailed(OperationError.INSUFFICIENT_FUNDS, self.client_id)

    def _add(self, left: Decimal, right: Decimal) -> Decimal:
        try:
            return checked_add(left, right)
        except AmountOverflow as e:
            raise OperationFailed(OperationError.FUNDS_OVERFLOW, self.client_id) from e

    def _sub(self, left: Decimal, right: Decimal) -> Decimal:
        try:
            return checked_sub(left, right)
        except AmountOverflow as e:
            raise OperationFailed(OperationError.FUNDS_OVERFLOW, self.client_id) from e

    def __repr__(self) -> str:
        return f"Account(client={self.client_id}, available={self._available}, held={self._held}, locked={self._locked})"
