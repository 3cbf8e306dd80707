"""
Message Classifier

Decides whether an SMS is a financial message and, if so, which provider
format it follows. Pure text processing: no I/O and no mutable state, so
one instance can be shared across threads.
"""
from typing import Iterable, Optional

from src.common.logging_config import get_logger
from src.common.models import ClassifiedFields, RawMessage, RECEIVED
from .patterns import is_financial_message
from .providers import ProviderRule, default_rules

logger = get_logger(__name__)


class MessageClassifier:
    """
    Runs the relevance gate, then the provider table in priority order.

    Usage:
        classifier = MessageClassifier()
        fields = classifier.classify(RawMessage(body="MPESA Confirmed. Ksh 50 ..."))
    """

    def __init__(self, rules: Optional[Iterable[ProviderRule]] = None,
                 generic_default_direction: str = RECEIVED):
        """
        Args:
            rules: Custom provider table; defaults to the built-in providers
            generic_default_direction: Direction for generic bank alerts with no outbound cue
        """
        self.rules = tuple(rules) if rules is not None else default_rules(generic_default_direction)

    def is_financial(self, body) -> bool:
        return is_financial_message(body)

    def classify(self, message: RawMessage) -> Optional[ClassifiedFields]:
        """
        Classify a single message.

        Returns:
            ClassifiedFields from the first rule whose predicate matches and
            whose extractor finds an amount, or None.
        """
        body = getattr(message, 'body', None)
        if not self.is_financial(body):
            return None

        for rule in self.rules:
            try:
                if not rule.matches(body):
                    continue
                fields = rule.extract(body)
            except Exception as e:
                logger.warning(
                    f"Extractor {rule.name} failed: {e}",
                    provider=rule.name,
                    error_type=type(e).__name__,
                    body_sample=body[:80],
                )
                return None
            if fields is not None:
                return fields
            logger.debug(f"{rule.name} matched but found no amount", provider=rule.name)

        return None
