import re
from typing import Optional

from src.common.models import ClassifiedFields, RECEIVED, SENT
from ..patterns import find_amount

PROVIDER_NAME = 'M-Pesa'
PROVIDER_TYPE = 'mpesa'

MPESA_MARKERS = re.compile(r"M-PESA|MPESA|Confirmed\.\s*Ksh|received.*Ksh|paid.*Ksh")

# "airtime for 0733111222"
AIRTIME_PATTERN = re.compile(r"airtime for\s+(\d+)", re.IGNORECASE)
# "received from JOHN DOE 254712345678"
FROM_PATTERN = re.compile(r"from\s+(.+?)\s+(\d+)", re.IGNORECASE)
# "sent to JANE 0711000222", "paid to SHOP 0722000111"
TO_PATTERN = re.compile(r"to\s+(.+?)\s+(\d+)", re.IGNORECASE)


def is_mpesa_message(body: str) -> bool:
    return bool(MPESA_MARKERS.search(body))


def parse_mpesa_message(body: str) -> Optional[ClassifiedFields]:
    """
    Mobile-money confirmations. The airtime clause wins over any from/to
    clause; otherwise "from X <digits>" is money in and "to X <digits>"
    is money out, the earliest "to" clause naming the payee.
    Without a cue the message counts as received.
    """
    amount = find_amount(body)
    if amount is None:
        return None

    sender = 'Unknown'
    phone = None
    direction = RECEIVED

    airtime = AIRTIME_PATTERN.search(body)
    if airtime or 'airtime for' in body.lower():
        sender = 'Airtime Purchase'
        phone = airtime.group(1) if airtime else None
        direction = SENT
    else:
        for pattern, cue in ((FROM_PATTERN, RECEIVED), (TO_PATTERN, SENT)):
            m = pattern.search(body)
            if m:
                sender = m.group(1).strip() or sender
                phone = m.group(2)
                direction = cue
                break

    return ClassifiedFields(
        provider_name=PROVIDER_NAME,
        amount=amount,
        direction=direction,
        counterparty_name=sender,
        counterparty_phone=phone,
        provider_type=PROVIDER_TYPE,
    )
