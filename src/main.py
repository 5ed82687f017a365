import csv
import logging
import sys
from typing import Dict, TextIO

from pydantic import ValidationError

from amount import format_amount
from config import get_settings
from models import AccountSnapshot, OperationFailed
from payments_engine import PaymentsEngine

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def write_report(accounts: Dict[int, AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
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
    argv = sys.argv[1:] if argv is None else argv
    try:
        settings = get_settings()
        logging.basicConfig(
            level=settings.log_level,
            format="%(levelname)s: %(message)s",
            stream=sys.stderr,
        )
    except (ValidationError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    if len(argv) != 1:
        print("Usage: payments-engine <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine(settings)
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        print(f"Cannot read {filepath}: {e}", file=sys.stderr)
        return 1
    except OperationFailed as e:
        print(f"Aborting run: {e}", file=sys.stderr)
        return 1

    write_report(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
