import csv
import logging
import sys
from typing import Dict, Iterable, Iterator, Optional, TextIO

from amount import parse_amount
from config import EngineSettings, get_settings
from models import (
    AccountSnapshot,
    OperationError,
    OperationFailed,
    ProcessingResult,
    ProcessingStats,
    Transaction,
    TransactionType,
)
from transaction_manager import TransactionManager

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"type", "client", "tx"}
MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


class PaymentsEngine:
    """
    Reads transaction records from CSV and feeds them, in order, to a TransactionManager.
    Rejected records are logged and skipped; only overflow can be configured to abort the run.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings if settings is not None else get_settings()
        self._manager = TransactionManager()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, AccountSnapshot]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="", encoding="utf-8", errors="replace") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, AccountSnapshot]:
        transactions = self._read_transactions(stream)
        if transactions is None:
            return {}

        self.process_transactions(transactions)

        # Print final processing report to stderr
        print(self._stats, file=sys.stderr)

        return {snapshot.client_id: snapshot for snapshot in self._manager.snapshot()}

    def process_transactions(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self._apply(transaction)

    def _apply(self, transaction: Transaction) -> None:
        try:
            result = self._manager.process(transaction)
        except OperationFailed as e:
            self._stats.record_failure()
            match e.error:
                case OperationError.FUNDS_OVERFLOW:
                    logger.error(f"Overflow while applying {transaction}")
                    if self._settings.fail_on_overflow:
                        raise
                case OperationError.ACCOUNT_LOCKED:
                    logger.warning(f"Rejected {transaction}: account {transaction.client_id} is locked")
                case OperationError.INSUFFICIENT_FUNDS:
                    logger.warning(f"Rejected {transaction}: not enough available funds")
                case OperationError.DUPLICATE_TRANSACTION:
                    logger.warning(f"Rejected {transaction}: transaction id already used")
                case OperationError.NEGATIVE_AMOUNT | OperationError.MISSING_AMOUNT:
                    logger.warning(f"Rejected {transaction}: {e.error.value.replace('_', ' ')}")
            return

        if result == ProcessingResult.APPLIED:
            self._stats.record_success()
        else:
            self._stats.record_ignored()

    def _read_transactions(self, stream: TextIO) -> Optional[Iterator[Transaction]]:
        """
        Validate the header and return a lazy iterator of parsed records.
        Returns None when the header is missing or unrecognized.
        """
        reader = csv.DictReader(stream)
        try:
            fieldnames = reader.fieldnames or []
        except csv.Error as e:
            logger.error(f"Unreadable CSV header: {e}")
            return None

        header = {name.strip().lower() for name in fieldnames}
        if not REQUIRED_COLUMNS <= header:
            logger.error(f"Unrecognized CSV header: {reader.fieldnames}")
            return None

        return self._parse_rows(reader)

    def _parse_rows(self, reader: csv.DictReader) -> Iterator[Transaction]:
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                logger.warning(f"Failed to read line {reader.line_num}: {e}")
                self._stats.record_skipped()
                continue

            transaction = self._parse_csv_row(row)
            if transaction is None:
                self._stats.record_skipped()
                continue
            yield transaction

    def _parse_csv_row(self, row: Dict[Optional[str], Optional[str]]) -> Optional[Transaction]:
        """Parse CSV row into Transaction."""
        try:
            normalized = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}

            transaction_type_str = normalized["type"].lower()
            client_id = _parse_id(normalized["client"], MAX_CLIENT_ID)
            transaction_id = _parse_id(normalized["tx"], MAX_TRANSACTION_ID)

            amount = None
            amount_str = normalized.get("amount", "")
            if amount_str:
                amount = parse_amount(amount_str)

            return Transaction(
                transaction_type=TransactionType(transaction_type_str),
                client_id=client_id,
                transaction_id=transaction_id,
                amount=amount,
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to parse row {row}: {e}")
            return None


def _parse_id(raw: str, upper: int) -> int:
    # int() alone would also take "1_000" and non-ASCII digits.
    if not (raw.isascii() and raw.lstrip("+").isdigit()):
        raise ValueError(f"invalid id {raw!r}")
    value = int(raw)
    if not 0 <= value <= upper:
        raise ValueError(f"id {value} out of range 0..{upper}")
    return value
