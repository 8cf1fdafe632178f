from typing import Dict, Optional, Set, Tuple

from models import Transaction, ClientAccount


class StateManager:
    """
    In-memory state for one replay run.
    Holds client accounts, the deposit/withdrawal history used for dispute
    lookups, and the per-client sets of currently disputed transactions.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[Tuple[int, int], Transaction] = {}
        self._recorded_transaction_ids: Set[int] = set()
        self._disputed_transaction_ids: Dict[int, Set[int]] = {}

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        """Return the account for a client, or None if it was never opened."""
        return self._accounts.get(client_id)

    def create_account(self, client_id: int) -> ClientAccount:
        account = ClientAccount(client_id=client_id)
        self._accounts[client_id] = account
        return account

    def store_transaction(self, transaction: Transaction) -> None:
        """
        Store a deposit or withdrawal for future dispute lookups.
        The first transaction recorded under an id wins.
        """
        key = (transaction.client_id, transaction.transaction_id)
        if transaction.transaction_id in self._recorded_transaction_ids:
            return
        self._transactions[key] = transaction
        self._recorded_transaction_ids.add(transaction.transaction_id)

    def get_transaction(self, client_id: int, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a stored transaction recorded by this client."""
        return self._transactions.get((client_id, transaction_id))

    def is_transaction_recorded(self, transaction_id: int) -> bool:
        """Check whether any client has already recorded this transaction id."""
        return transaction_id in self._recorded_transaction_ids

    def has_transactions(self) -> bool:
        return bool(self._transactions)

    def get_disputes(self, client_id: int) -> Optional[Set[int]]:
        """Return the client's disputed transaction ids, or None if it never had one."""
        return self._disputed_transaction_ids.get(client_id)

    def mark_transaction_disputed(self, client_id: int, transaction_id: int) -> None:
        self._disputed_transaction_ids.setdefault(client_id, set()).add(transaction_id)

    def is_transaction_disputed(self, client_id: int, transaction_id: int) -> bool:
        """Check if transaction is currently disputed by this client."""
        return transaction_id in self._disputed_transaction_ids.get(client_id, ())

    def clear_transaction_dispute(self, client_id: int, transaction_id: int) -> None:
        disputes = self._disputed_transaction_ids.get(client_id)
        if disputes is not None:
            disputes.discard(transaction_id)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
