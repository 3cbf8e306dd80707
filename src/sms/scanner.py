"""
Batch scan: classify and assemble a list of inbox messages.
"""
from collections.abc import Iterable, Mapping
from typing import List, Optional

from src.common.logging_config import get_logger
from src.common.models import RawMessage, Transaction
from .classifier import MessageClassifier
from .exceptions import InvalidMessageBatchError
from .identity import assemble

logger = get_logger(__name__)

_default_classifier = MessageClassifier()


def _coerce_message(item) -> Optional[RawMessage]:
    if isinstance(item, RawMessage):
        return item
    if isinstance(item, Mapping):
        return RawMessage.from_inbox(item)
    return None


def parse_message(item, classifier: Optional[MessageClassifier] = None) -> Optional[Transaction]:
    """
    Classify and assemble one inbox item (RawMessage or inbox dict).
    Returns None for anything that is not a usable financial message.
    """
    classifier = classifier or _default_classifier
    message = _coerce_message(item)
    if message is None:
        return None

    fields = classifier.classify(message)
    if fields is None:
        return None

    try:
        return assemble(message, fields)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        logger.warning(
            f"Could not assemble transaction: {e}",
            provider=fields.provider_name,
            external_id=message.external_id,
            error_type=type(e).__name__,
        )
        return None


def scan(messages, classifier: Optional[MessageClassifier] = None) -> List[Transaction]:
    """
    Turn a batch of inbox messages into transactions, in input order.
    Non-financial and unparseable messages are dropped.

    Raises:
        InvalidMessageBatchError: if messages is None or not a batch
    """
    if messages is None or isinstance(messages, (str, bytes, Mapping)) or not isinstance(messages, Iterable):
        raise InvalidMessageBatchError(
            "scan() expects a list of messages",
            received_type=type(messages).__name__,
        )

    classifier = classifier or _default_classifier
    transactions = []
    total = 0
    for item in messages:
        total += 1
        tx = parse_message(item, classifier)
        if tx is not None:
            transactions.append(tx)

    logger.info(
        f"Parsed {len(transactions)} transactions from {total} messages",
        messages_read=total,
        parsed=len(transactions),
        dropped=total - len(transactions),
    )
    return transactions
