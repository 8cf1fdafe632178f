import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from models import Transaction, TransactionType, MAX_AMOUNT, MAX_CLIENT_ID, MAX_TRANSACTION_ID, normalize_amount

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")


class RecordParseError(ValueError):
    """Raised when an input row cannot be turned into a Transaction."""

    def __init__(self, line_number: int, message: str):
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


def read_transactions(filepath: str) -> List[Transaction]:
    """Read a CSV file into a list of transactions, in file order."""
    with open(filepath, "r", newline="") as f:
        transactions = parse_transactions(f)
    logger.info(f"Read {len(transactions)} transactions from {filepath}")
    return transactions


def parse_transactions(lines: Iterable[str]) -> List[Transaction]:
    """
    Parse CSV lines (header first) into transactions.
    Any malformed row fails the whole batch so the engine never sees a partial stream.
    """
    reader = csv.reader(lines, skipinitialspace=True)
    header = next(reader, None)
    if header is None:
        return []

    columns = [name.strip().lower() for name in header]
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise RecordParseError(1, f"missing columns {', '.join(missing)}")

    transactions = []
    for row in reader:
        if not any(value.strip() for value in row):
            continue
        fields = dict(zip(columns, row))
        transactions.append(parse_csv_row(fields, reader.line_num))
    return transactions


def parse_csv_row(row: Dict[str, Optional[str]], line_number: int = 0) -> Transaction:
    """Parse one CSV row (column name -> raw value) into a Transaction."""
    normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except KeyError:
        raise RecordParseError(line_number, "missing type")
    except ValueError:
        raise RecordParseError(line_number, f"unknown transaction type {normalized['type']!r}")

    client_id = _parse_id(normalized, "client", MAX_CLIENT_ID, line_number)
    transaction_id = _parse_id(normalized, "tx", MAX_TRANSACTION_ID, line_number)

    amount = None
    amount_str = normalized.get("amount", "")
    if amount_str:
        amount = _parse_amount(amount_str, line_number)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(row: Dict[str, str], column: str, upper_bound: int, line_number: int) -> int:
    value = row.get(column, "")
    if not (value.isascii() and value.isdigit()):
        raise RecordParseError(line_number, f"invalid {column} {value!r}")
    parsed = int(value)
    if parsed > upper_bound:
        raise RecordParseError(line_number, f"{column} {parsed} out of range 0..{upper_bound}")
    return parsed


def _parse_amount(value: str, line_number: int) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise RecordParseError(line_number, f"invalid amount {value!r}")
    if not amount.is_finite():
        raise RecordParseError(line_number, f"invalid amount {value!r}")
    if amount.copy_abs() >= MAX_AMOUNT:
        raise RecordParseError(line_number, f"amount {value!r} out of range, must be below {MAX_AMOUNT}")
    return normalize_amount(amount)
