import re
from typing import Optional

from src.common.models import ClassifiedFields, RECEIVED, SENT
from ..patterns import find_amount

PROVIDER_NAME = 'Co-operative Bank'
PROVIDER_TYPE = 'coop'
FALLBACK_SENDER = 'Co-op Customer'

COOP_MARKERS = re.compile(r"Co-op Bank|CO-OP BANK|credited with", re.IGNORECASE)
SENDER_PATTERN = re.compile(r"from\s+(.+?)\.")


def is_coop_message(body: str) -> bool:
    return bool(COOP_MARKERS.search(body))


def parse_coop_message(body: str) -> Optional[ClassifiedFields]:
    amount = find_amount(body)
    if amount is None:
        return None

    direction = SENT if 'debited' in body else RECEIVED

    m = SENDER_PATTERN.search(body)
    sender = m.group(1).strip() if m else ''

    return ClassifiedFields(
        provider_name=PROVIDER_NAME,
        amount=amount,
        direction=direction,
        counterparty_name=sender or FALLBACK_SENDER,
        provider_type=PROVIDER_TYPE,
    )
