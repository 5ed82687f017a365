import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from account import Account
from amount import MAX_AMOUNT
from models import OperationError, OperationFailed


def assert_state(account: Account, available: str, held: str, locked: bool = False):
    assert account.available == Decimal(available)
    assert account.held == Decimal(held)
    assert account.total == Decimal(available) + Decimal(held)
    assert account.locked is locked


class TestAccount:
    def test_new_account(self):
        account = Account(1)
        assert_state(account, "0", "0")

    def test_deposit(self):
        account = Account(1)
        account.deposit(Decimal("1.0"))
        assert_state(account, "1.0", "0")

    def test_deposit_then_full_withdrawal(self):
        account = Account(1)
        account.deposit(Decimal("100.0"))
        account.withdraw(Decimal("100.0"))
        assert_state(account, "0", "0")

    def test_withdraw_with_sufficient_funds(self):
        account = Account(1)
        account.deposit(Decimal("100.0"))
        account.withdraw(Decimal("99.5"))
        assert_state(account, "0.5", "0")

    def test_withdraw_insufficient_funds(self):
        account = Account(1)
        account.deposit(Decimal("100.0"))
        with pytest.raises(OperationFailed) as exc_info:
            account.withdraw(Decimal("200.0"))
        assert exc_info.value.error == OperationError.INSUFFICIENT_FUNDS
        assert exc_info.value.client_id == 1
        assert_state(account, "100.0", "0")

    def test_withdraw_from_empty_account(self):
        account = Account(123)
        with pytest.raises(OperationFailed) as exc_info:
            account.withdraw(Decimal("42"))
        assert exc_info.value.error == OperationError.INSUFFICIENT_FUNDS
        assert_state(account, "0", "0")

    def test_hold_and_release(self):
        account = Account(1)
        account.deposit(Decimal("10"))
        account.hold(Decimal("5"))
        assert_state(account, "5", "5")
        account.release(Decimal("5"))
        assert_state(account, "10", "0")

    def test_hold_more_than_available(self):
        account = Account(1)
        account.deposit(Decimal("2"))
        with pytest.raises(OperationFailed) as exc_info:
            account.hold(Decimal("5"))
        assert exc_info.value.error == OperationError.INSUFFICIENT_FUNDS
        assert_state(account, "2", "0")

    def test_forfeit_and_lock(self):
        account = Account(1)
        account.deposit(Decimal("100"))
        account.hold(Decimal("10"))
        account.forfeit_and_lock(Decimal("10"))
        assert_state(account, "90", "0", locked=True)

    def test_restore_keeps_lock_state(self):
        account = Account(1)
        account.deposit(Decimal("5"))
        account.withdraw(Decimal("2"))
        account.restore(Decimal("2"))
        assert_state(account, "5", "0")

    def test_locked_account_rejects_deposit_and_withdrawal(self):
        account = Account(1)
        account.deposit(Decimal("10"))
        account.hold(Decimal("5"))
        account.forfeit_and_lock(Decimal("5"))

        with pytest.raises(OperationFailed) as exc_info:
            account.deposit(Decimal("5"))
        assert exc_info.value.error == OperationError.ACCOUNT_LOCKED

        with pytest.raises(OperationFailed) as exc_info:
            account.withdraw(Decimal("1"))
        assert exc_info.value.error == OperationError.ACCOUNT_LOCKED

        assert_state(account, "5", "0", locked=True)

    def test_locked_account_still_allows_dispute_operations(self):
        account = Account(1)
        account.deposit(Decimal("10"))
        account.hold(Decimal("4"))
        account.forfeit_and_lock(Decimal("4"))

        account.hold(Decimal("6"))
        assert_state(account, "0", "6", locked=True)
        account.release(Decimal("6"))
        account.restore(Decimal("1"))
        assert_state(account, "7", "0", locked=True)

    def test_deposit_overflow_leaves_state_unchanged(self):
        account = Account(1)
        account.deposit(MAX_AMOUNT)
        with pytest.raises(OperationFailed) as exc_info:
            account.deposit(Decimal("1"))
        assert exc_info.value.error == OperationError.FUNDS_OVERFLOW
        assert account.available == MAX_AMOUNT

    def test_deposit_overflow_on_total(self):
        account = Account(1)
        account.deposit(MAX_AMOUNT)
        account.hold(MAX_AMOUNT)
        with pytest.raises(OperationFailed) as exc_info:
            account.deposit(Decimal("1"))
        assert exc_info.value.error == OperationError.FUNDS_OVERFLOW
        assert account.available == Decimal("0")
        assert account.held == MAX_AMOUNT

    def test_restore_overflow(self):
        account = Account(1)
        account.deposit(MAX_AMOUNT)
        with pytest.raises(OperationFailed) as exc_info:
            account.restore(Decimal("0.0001"))
        assert exc_info.value.error == OperationError.FUNDS_OVERFLOW
        assert account.total == MAX_AMOUNT

    def test_snapshot(self):
        account = Account(3)
        account.deposit(Decimal("4"))
        account.hold(Decimal("1"))
        snapshot = account.snapshot()
        assert snapshot == (3, Decimal("3"), Decimal("1"), Decimal("4"), False)
