"""
SMS Scan Service

Drives a full scan against injected collaborators:
check permission -> request it if missing -> read inbox -> scan.
Nothing is remembered between calls; the caller keeps the returned
ScanReport if it wants a "last scan" time.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol

from src.common.logging_config import get_logger, scan_context
from src.common.models import Transaction
from .classifier import MessageClassifier
from .exceptions import InboxReadError, SmsPermissionDeniedError
from .scanner import scan

logger = get_logger(__name__)


class PermissionGate(Protocol):
    def check(self) -> bool: ...

    def request(self) -> bool: ...


class InboxReader(Protocol):
    def read(self, limit: int) -> List[Mapping[str, Any]]: ...


@dataclass
class ScanReport:
    transactions: List[Transaction]
    messages_read: int
    scanned_at: datetime
    scan_id: str = ''
    added: List[Transaction] = field(default_factory=list)

    @property
    def found_any(self) -> bool:
        return bool(self.transactions)


def scan_status(permission_granted: bool, last_scan_time: Optional[datetime]) -> Dict[str, Any]:
    """Status payload shown next to the scan button."""
    return {
        'has_permission': permission_granted,
        'last_scan_time': last_scan_time.isoformat() if last_scan_time else None,
        'can_scan': permission_granted,
    }


class SmsScanService:

    def __init__(self, permissions: PermissionGate, inbox: InboxReader,
                 classifier: Optional[MessageClassifier] = None, store=None, inbox_limit: int = 200):
        self.permissions = permissions
        self.inbox = inbox
        self.classifier = classifier or MessageClassifier()
        self.store = store
        self.inbox_limit = inbox_limit

    def ensure_permission(self) -> None:
        if self.permissions.check():
            return
        logger.info("SMS permission missing, requesting it")
        if not self.permissions.request():
            logger.warning("SMS permission denied")
            raise SmsPermissionDeniedError("SMS permission denied")

    def scan_recent_transactions(self, limit: Optional[int] = None) -> ScanReport:
        """
        Read the most recent inbox messages and turn them into transactions.
        When a store is configured, new transactions are merged into it.

        Each call logs under its own scan id, or under the caller's id when
        one is already active (e.g. an HTTP request).

        Raises:
            SmsPermissionDeniedError: if the user refuses SMS access
            InboxReadError: if the inbox cannot be read
        """
        limit = limit or self.inbox_limit
        with scan_context() as scan_id:
            return self._scan(limit, scan_id)

    def _scan(self, limit: int, scan_id: str) -> ScanReport:
        self.ensure_permission()

        try:
            messages = self.inbox.read(limit)
        except Exception as e:
            logger.error(f"Failed to read SMS: {e}", exc_info=True, limit=limit)
            raise InboxReadError(f"Failed to read SMS: {e}", limit=limit) from e

        if messages is None:
            raise InboxReadError("Inbox reader returned no message list", limit=limit)
        messages = list(messages)

        logger.info(f"Read {len(messages)} SMS messages", messages_read=len(messages), limit=limit)
        transactions = scan(messages, self.classifier)

        added = []
        if self.store is not None:
            added = self.store.merge_scan(transactions)

        if not transactions:
            logger.info("No transactions found in recent SMS")

        return ScanReport(
            transactions=transactions,
            messages_read=len(messages),
            scanned_at=datetime.now(timezone.utc),
            scan_id=scan_id,
            added=added,
        )
