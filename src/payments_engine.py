import logging
from typing import Dict, Iterable

from models import Transaction, ClientAccount, ProcessingResult, ProcessingStats
from records import read_transactions
from state_manager import StateManager
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Replays an ordered stream of transactions into final account states.
    Single-threaded: each transaction is fully applied before the next one is read.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        return self.replay(read_transactions(filepath))

    def replay(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply transactions in order and return the accounts they produced."""
        logger.info("Starting replay")

        for transaction in transactions:
            self._apply(transaction)

        logger.info(
            f"Replay complete: {self.stats.total} transactions, "
            f"{self.stats.applied} applied, "
            f"{self.stats.ignored} ignored, "
            f"{self.stats.duplicates} duplicates dropped"
        )
        return self._state.get_all_accounts()

    def _apply(self, transaction: Transaction) -> None:
        # Deposit and withdrawal ids are unique across all clients.
        if transaction.transaction_type.moves_funds and self._state.is_transaction_recorded(transaction.transaction_id):
            logger.debug(f"Dropping duplicate {transaction}")
            self.stats.record_duplicate()
            return

        result = self._processor.process_transaction(transaction)

        if result == ProcessingResult.SUCCESS:
            self.stats.record_success()
        else:
            self.stats.record_ignored()


def replay(transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
    """Replay transactions on a fresh engine."""
    return PaymentsEngine().replay(transactions)
