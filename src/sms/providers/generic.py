"""
Fallback for bank alerts no specialised provider claimed.
"""
from typing import Optional

from src.common.models import ClassifiedFields, RECEIVED, SENT
from ..patterns import find_amount, KSH_AMOUNT, KES_AMOUNT

PROVIDER_TYPE = 'bank'
UNKNOWN_BANK = 'Unknown Bank'
FALLBACK_SENDER = 'Bank Customer'

# Body keyword -> display label, first match wins
BANK_KEYWORDS = [
    ('KCB', 'KCB'),
    ('DTB', 'DTB'),
    ('Family Bank', 'Family Bank'),
    ('Standard Chartered', 'Standard Chartered'),
    ('NCBA', 'NCBA'),
    ('Absa', 'Absa'),
    ('Stanbic', 'Stanbic'),
]

OUTBOUND_CUES = ('debited', 'paid', 'sent')


def detect_bank_name(body: str) -> str:
    for keyword, label in BANK_KEYWORDS:
        if keyword in body:
            return label
    return UNKNOWN_BANK


def is_generic_bank_message(body: str) -> bool:
    return True


def parse_generic_bank_message(body: str, default_direction: str = RECEIVED) -> Optional[ClassifiedFields]:
    """
    Accepts Ksh or KES amounts. Outbound cues mark the message as sent;
    anything else takes default_direction.
    """
    amount = find_amount(body, (KSH_AMOUNT, KES_AMOUNT))
    if amount is None:
        return None

    direction = default_direction
    if any(cue in body for cue in OUTBOUND_CUES):
        direction = SENT

    return ClassifiedFields(
        provider_name=detect_bank_name(body),
        amount=amount,
        direction=direction,
        counterparty_name=FALLBACK_SENDER,
        provider_type=PROVIDER_TYPE,
    )
