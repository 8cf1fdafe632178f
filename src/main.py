import csv
import os
import sys
import logging
from decimal import Decimal
from typing import Dict, TextIO

from models import ClientAccount, ledger_context, normalize_amount
from payments_engine import PaymentsEngine
from records import RecordParseError

CSV_EXTENSION = ".csv"
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

logging.basicConfig(
    level=getattr(logging, os.environ.get("PAYMENTS_LOG_LEVEL", "WARNING").upper(), logging.WARNING),
    format="%(levelname)s: %(message)s",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    with ledger_context():
        normalized = normalize_amount(value)
        if normalized.is_zero():
            normalized = normalized.copy_abs()
        return f"{normalized:.4f}"


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write one CSV row per account, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])


def main(argv=None) -> int:
    argv = sys.argv if argv is None else argv
    if len(argv) != 2:
        print(f"Usage: {argv[0]} <file.csv>", file=sys.stderr)
        return 1

    filepath = argv[1]
    if not filepath.endswith(CSV_EXTENSION):
        print("Error: The file must have a .csv extension", file=sys.stderr)
        return 1

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except (OSError, RecordParseError) as e:
        logger.error(f"Failed to read {filepath}: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
