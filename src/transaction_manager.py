import logging
from decimal import Decimal
from typing import Iterator, Optional

from amount import ZERO
from models import (
    AccountSnapshot,
    DisputableTransaction,
    DisputeState,
    OperationError,
    OperationFailed,
    ProcessingResult,
    Transaction,
    TransactionType,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionManager:
    """
    Applies transactions to accounts in the order they are fed.

    process() returns APPLIED when the record changed state and IGNORED when a
    dispute, resolve or chargeback had nothing valid to act on. Rejected
    records raise OperationFailed; no state is changed in that case.
    """

    def __init__(self, state: Optional[StateManager] = None):
        self._state = state if state is not None else StateManager()

    def process(self, transaction: Transaction) -> ProcessingResult:
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)

    def snapshot(self) -> Iterator[AccountSnapshot]:
        """Yield the final row of every account; order is not guaranteed."""
        for account in self._state.iter_accounts():
            yield account.snapshot()

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        amount = self._validate_new_transaction(transaction)
        account = self._state.get_or_create_account(transaction.client_id)
        account.deposit(amount)
        self._record(transaction, amount)
        return ProcessingResult.APPLIED

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        amount = self._validate_new_transaction(transaction)
        account = self._state.get_or_create_account(transaction.client_id)
        account.withdraw(amount)
        self._record(transaction, amount)
        return ProcessingResult.APPLIED

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction, DisputeState.NORMAL)
        if original is None:
            return ProcessingResult.IGNORED

        account = self._state.get_or_create_account(transaction.client_id)
        # Withdrawn funds already left the account, there is nothing to hold.
        if original.transaction_type == TransactionType.DEPOSIT:
            account.hold(original.amount)
        original.dispute_state = DisputeState.DISPUTED
        return ProcessingResult.APPLIED

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction, DisputeState.DISPUTED)
        if original is None:
            return ProcessingResult.IGNORED

        account = self._state.get_or_create_account(transaction.client_id)
        if original.transaction_type == TransactionType.DEPOSIT:
            account.release(original.amount)
        original.dispute_state = DisputeState.RESOLVED
        return ProcessingResult.APPLIED

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        original = self._find_referenced(transaction, DisputeState.DISPUTED)
        if original is None:
            return ProcessingResult.IGNORED

        account = self._state.get_or_create_account(transaction.client_id)
        if original.transaction_type == TransactionType.DEPOSIT:
            account.forfeit_and_lock(original.amount)
        else:
            account.restore(original.amount)
        original.dispute_state = DisputeState.CHARGEDBACK
        return ProcessingResult.APPLIED

    def _validate_new_transaction(self, transaction: Transaction) -> Decimal:
        if transaction.amount is None:
            raise OperationFailed(OperationError.MISSING_AMOUNT, transaction.client_id, transaction.transaction_id)
        if transaction.amount < ZERO:
            raise OperationFailed(OperationError.NEGATIVE_AMOUNT, transaction.client_id, transaction.transaction_id)
        if self._state.has_transaction(transaction.transaction_id):
            raise OperationFailed(
                OperationError.DUPLICATE_TRANSACTION, transaction.client_id, transaction.transaction_id
            )
        return transaction.amount

    def _record(self, transaction: Transaction, amount: Decimal) -> None:
        self._state.store_transaction(
            transaction.transaction_id,
            DisputableTransaction(
                transaction_type=transaction.transaction_type,
                client_id=transaction.client_id,
                amount=amount,
            ),
        )

    def _find_referenced(self, transaction: Transaction, expected: DisputeState) -> Optional[DisputableTransaction]:
        """Look up the deposit/withdrawal a dispute-family record points at."""
        action = transaction.transaction_type.value
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.info(f"{action.capitalize()} for tx {transaction.transaction_id}: transaction not found, ignoring")
            return None

        if original.client_id != transaction.client_id:
            logger.info(
                f"{action.capitalize()} for tx {transaction.transaction_id}: client mismatch "
                f"(expected {original.client_id}, got {transaction.client_id}), ignoring"
            )
            return None

        if original.dispute_state != expected:
            logger.info(
                f"{action.capitalize()} for tx {transaction.transaction_id}: transaction is "
                f"{original.dispute_state.value}, ignoring"
            )
            return None

        return original

    def account_snapshot(self, client_id: int) -> Optional[AccountSnapshot]:
        account = self._state.get_account(client_id)
        return account.snapshot() if account is not None else None
