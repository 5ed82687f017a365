from typing import Dict, Iterator, Optional

from account import Account
from models import DisputableTransaction


class StateManager:
    """
    Owns every account and the history of settled deposits/withdrawals.
    The history is kept only so later disputes can be resolved.
    """

    def __init__(self):
        self._accounts: Dict[int, Account] = {}
        self._transactions: Dict[int, DisputableTransaction] = {}

    def get_or_create_account(self, client_id: int) -> Account:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = Account(client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[Account]:
        return self._accounts.get(client_id)

    def store_transaction(self, transaction_id: int, entry: DisputableTransaction) -> None:
        """Store transaction for future dispute lookups."""
        self._transactions[transaction_id] = entry

    def get_transaction(self, transaction_id: int) -> Optional[DisputableTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def iter_accounts(self) -> Iterator[Account]:
        return iter(self._accounts.values())
