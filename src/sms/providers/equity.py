import re
from typing import Optional

from src.common.models import ClassifiedFields, RECEIVED, SENT
from ..patterns import find_amount

PROVIDER_NAME = 'Equity Bank'
PROVIDER_TYPE = 'equity'
FALLBACK_SENDER = 'Equity Bank Customer'

EQUITY_MARKERS = re.compile(r"Equity Bank|equitybank|Acc\. No:|Amt:", re.IGNORECASE)

# "from JOHN DOE on 12/01/24" or "from JOHN DOE."
SENDER_PATTERNS = (
    re.compile(r"from\s+(.+?)\s+on", re.IGNORECASE),
    re.compile(r"from\s+(.+?)\.", re.IGNORECASE),
)


def is_equity_message(body: str) -> bool:
    return bool(EQUITY_MARKERS.search(body))


def parse_equity_message(body: str) -> Optional[ClassifiedFields]:
    """Equity alerts default to money out unless credited/received appears."""
    amount = find_amount(body)
    if amount is None:
        return None

    direction = SENT
    if 'credited' in body or 'received' in body:
        direction = RECEIVED

    sender = FALLBACK_SENDER
    for pattern in SENDER_PATTERNS:
        m = pattern.search(body)
        if m:
            sender = m.group(1).strip() or FALLBACK_SENDER
            break

    return ClassifiedFields(
        provider_name=PROVIDER_NAME,
        amount=amount,
        direction=direction,
        counterparty_name=sender,
        provider_type=PROVIDER_TYPE,
    )
