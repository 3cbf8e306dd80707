"""
Transaction Identity & Assembly

Ids must stay byte-for-byte compatible with records already persisted by
the mobile app, so the hash reproduces its 32-bit shift/subtract rolling
hash over UTF-16 code units and numbers render the way it rendered them.
"""
import re
import struct

from src.common.models import ClassifiedFields, RawMessage, Transaction, RECEIVED, SMS_ID_PREFIX, SOURCE_SMS_SCAN

_WHITESPACE = re.compile(r"\s+")


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def rolling_hash(text: str) -> int:
    """
    hash = (hash << 5) - hash + c over UTF-16 code units, wrapped to a
    signed 32-bit integer after every step.
    """
    encoded = text.encode('utf-16-le', 'surrogatepass')
    h = 0
    for (code_unit,) in struct.iter_unpack('<H', encoded):
        h = _to_int32((h << 5) - h + code_unit)
    return h


def format_number(value) -> str:
    """
    Render a number for the id key: 1500.0 -> "1500", 99.5 -> "99.5".
    Strings pass through untouched.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def composition_key(message: RawMessage, provider_name: str, amount: float) -> str:
    external_id = message.external_id if message.external_id else ''
    received_at = '' if message.received_at is None else format_number(message.received_at)
    return '_'.join((
        str(external_id),
        message.body,
        received_at,
        provider_name,
        format_number(amount),
    ))


def generate_transaction_id(message: RawMessage, provider_name: str, amount: float) -> str:
    """
    Deterministic id: the same message content under the same provider and
    amount always yields the same id, so a re-scan never duplicates records.
    """
    digest = abs(rolling_hash(composition_key(message, provider_name, amount)))
    return f"{SMS_ID_PREFIX}{digest}_{_WHITESPACE.sub('_', provider_name)}"


def assemble(message: RawMessage, fields: ClassifiedFields) -> Transaction:
    """Build the canonical Transaction from a message and its classification."""
    signed_amount = fields.amount if fields.direction == RECEIVED else -fields.amount
    return Transaction(
        id=generate_transaction_id(message, fields.provider_name, fields.amount),
        amount=signed_amount,
        sender=fields.counterparty_name,
        phone=fields.counterparty_phone,
        timestamp=message.received_datetime(),
        provider_type=fields.provider_type,
        transaction_direction=fields.direction,
        raw_message=message.body,
        bank=fields.provider_name,
        source_tag=SOURCE_SMS_SCAN,
    )
