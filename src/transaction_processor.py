import logging
from typing import Optional

from models import Transaction, TransactionType, ProcessingResult
from state_manager import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions to state, one at a time.
    Returns ProcessingResult to indicate whether the transaction changed anything.
    Rejected transactions are ignored, never raised.
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the ledger
            IGNORED: Rejected by policy (missing account, locked account, unknown dispute, ...)
        """
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

    def _handle_deposit(self, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None or transaction.amount <= 0:
            logger.debug(f"Deposit tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.IGNORED

        account = self._state.get_account(transaction.client_id)
        if account is None:
            account = self._state.create_account(transaction.client_id)
        elif account.locked:
            logger.debug(f"Deposit tx {transaction.transaction_id}: client {transaction.client_id} is locked")
            return ProcessingResult.IGNORED

        account.credit(transaction.amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction) -> ProcessingResult:
        if transaction.amount is None:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: missing amount")
            return ProcessingResult.IGNORED

        account = self._state.get_account(transaction.client_id)
        if account is None:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: client {transaction.client_id} has no account")
            return ProcessingResult.IGNORED

        # A withdrawal consumes its id even when it is not applied.
        self._state.store_transaction(transaction)

        if account.locked:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: client {transaction.client_id} is locked")
            return ProcessingResult.IGNORED

        if account.available < transaction.amount:
            logger.debug(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({account.available} < {transaction.amount})")
            return ProcessingResult.IGNORED

        account.debit(transaction.amount)
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        client_id = transaction.client_id
        transaction_id = transaction.transaction_id

        if not self._state.has_transactions():
            logger.debug(f"Dispute for tx {transaction_id}: no transactions recorded yet")
            return ProcessingResult.IGNORED

        account = self._state.get_account(client_id)
        if account is None:
            logger.debug(f"Dispute for tx {transaction_id}: client {client_id} has no account")
            return ProcessingResult.IGNORED

        if account.locked:
            logger.debug(f"Dispute for tx {transaction_id}: client {client_id} is locked")
            return ProcessingResult.IGNORED

        if self._state.is_transaction_disputed(client_id, transaction_id):
            logger.debug(f"Dispute for tx {transaction_id}: transaction already disputed")
            return ProcessingResult.IGNORED

        original = self._state.get_transaction(client_id, transaction_id)
        if original is None or original.amount is None or not original.transaction_type.moves_funds:
            logger.debug(f"Dispute for tx {transaction_id}: no disputable transaction for client {client_id}")
            return ProcessingResult.IGNORED

        # Disputed withdrawals are held too, so available can go negative here.
        account.hold(original.amount)
        self._state.mark_transaction_disputed(client_id, transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        original = self._find_disputed_original(transaction)
        if original is None:
            return ProcessingResult.IGNORED

        account = self._state.get_account(transaction.client_id)
        account.release_hold(original.amount)
        self._state.clear_transaction_dispute(transaction.client_id, transaction.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        original = self._find_disputed_original(transaction)
        if original is None:
            return ProcessingResult.IGNORED

        account = self._state.get_account(transaction.client_id)
        if account.held >= original.amount:
            account.remove_held(original.amount)
        else:
            logger.debug(f"Chargeback for tx {transaction.transaction_id}: held {account.held} below {original.amount}, locking only")

        self._state.clear_transaction_dispute(transaction.client_id, transaction.transaction_id)
        account.lock()
        return ProcessingResult.SUCCESS

    def _find_disputed_original(self, transaction: Transaction) -> Optional[Transaction]:
        """Shared resolve/chargeback checks. Returns the disputed original or None."""
        kind = transaction.transaction_type.value.capitalize()
        client_id = transaction.client_id
        transaction_id = transaction.transaction_id

        disputes = self._state.get_disputes(client_id)
        if disputes is None or transaction_id not in disputes:
            logger.debug(f"{kind} for tx {transaction_id}: transaction is not under dispute")
            return None

        account = self._state.get_account(client_id)
        if account is None or account.locked:
            logger.debug(f"{kind} for tx {transaction_id}: client {client_id} is missing or locked")
            return None

        original = self._state.get_transaction(client_id, transaction_id)
        if original is None or original.amount is None:
            logger.debug(f"{kind} for tx {transaction_id}: original amount not found")
            return None

        return original
