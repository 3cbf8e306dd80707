"""
JSON file store for persisted transaction records.

Stands in for the app's 'transactions' key: a single JSON list holding
both SMS-scanned and manually entered records.
"""
import json
import os
from pathlib import Path
from typing import Iterable, List, Mapping

from src.common.logging_config import get_logger
from src.common.models import Transaction, is_sms_record
from .consolidator import TransactionConsolidator

logger = get_logger(__name__)


class JsonTransactionStore:

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> List[Mapping]:
        """All stored records. A missing or unreadable file counts as empty."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read transaction store: {e}", path=str(self.path))
            return []

        if not isinstance(data, list):
            logger.warning("Transaction store does not hold a list, ignoring it", path=str(self.path))
            return []
        return [record for record in data if isinstance(record, dict)]

    def save(self, records: Iterable[Mapping]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(list(records), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            logger.error("Could not write transaction store", path=str(self.path), exc_info=True)
            raise

    def merge_scan(self, transactions: Iterable[Transaction]) -> List[Transaction]:
        """
        Persist scanned transactions not already stored.

        Returns:
            The transactions that were actually added.
        """
        existing = self.load()
        merged, added = TransactionConsolidator.merge(existing, transactions)
        if added:
            self.save(merged)
        logger.info(f"Stored {len(added)} new transactions", added=len(added), total=len(merged))
        return added

    def sms_transactions(self) -> List[Transaction]:
        """Stored SMS-scanned records as transactions. Malformed records are skipped."""
        transactions = []
        for record in self.load():
            if not is_sms_record(record):
                continue
            try:
                transactions.append(Transaction.from_record(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed stored record: {e}", record_id=record.get('id'))
        return transactions
