from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

RECEIVED = 'received'
SENT = 'sent'
DIRECTIONS = (RECEIVED, SENT)

SOURCE_SMS_SCAN = 'sms_scan'
SOURCE_MANUAL = 'manual'
SMS_ID_PREFIX = 'tx_'
MANUAL_ID_PREFIX = 'txn_'


@dataclass(frozen=True)
class RawMessage:
    """
    One message as delivered by the inbox reader.

    received_at keeps the original representation (int millis or numeric
    string) because it is part of the transaction id key.
    """
    body: str
    received_at: Union[int, str, None] = None
    external_id: Optional[str] = None

    @classmethod
    def from_inbox(cls, data: Mapping[str, Any]) -> 'RawMessage':
        """
        Build from an inbox dict. Accepts the canonical keys
        (externalId, body, receivedAtEpochMillis) or the Android
        inbox keys (_id, body, date).
        """
        external_id = data.get('externalId', data.get('_id'))
        received_at = data.get('receivedAtEpochMillis', data.get('date'))
        return cls(
            body=data.get('body'),
            received_at=received_at,
            external_id=external_id,
        )

    def received_datetime(self) -> datetime:
        millis = int(float(self.received_at))
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class ClassifiedFields:
    provider_name: str
    amount: float
    direction: str  # 'received' | 'sent'
    counterparty_name: str
    counterparty_phone: Optional[str] = None
    provider_type: str = 'bank'  # 'mpesa' | 'equity' | 'coop' | 'bank'


@dataclass(frozen=True)
class Transaction:
    """
    Canonical representation of an SMS-derived transaction.
    Amount is signed: positive for received, negative for sent.
    """
    id: str
    amount: float
    sender: str
    timestamp: datetime
    provider_type: str
    transaction_direction: str
    raw_message: str
    bank: str
    phone: Optional[str] = None
    source_tag: str = SOURCE_SMS_SCAN

    def to_dict(self):
        return {
            'id': self.id,
            'amount': self.amount,
            'sender': self.sender,
            'phone': self.phone,
            'timestamp': self.timestamp,
            'provider_type': self.provider_type,
            'transaction_direction': self.transaction_direction,
            'raw_message': self.raw_message,
            'bank': self.bank,
            'source_tag': self.source_tag,
        }

    def to_record(self):
        """Record shape persisted under the app's 'transactions' key."""
        return {
            'id': self.id,
            'amount': self.amount,
            'sender': self.sender,
            'phone': self.phone,
            'timestamp': self.timestamp.isoformat(),
            'type': self.provider_type,
            'transactionType': self.transaction_direction,
            'message': self.raw_message,
            'bank': self.bank,
            'source': self.source_tag,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'Transaction':
        return cls(
            id=record['id'],
            amount=float(record['amount']),
            sender=record['sender'],
            phone=record.get('phone'),
            timestamp=datetime.fromisoformat(record['timestamp']),
            provider_type=record.get('type', 'bank'),
            transaction_direction=record['transactionType'],
            raw_message=record.get('message', ''),
            bank=record['bank'],
            source_tag=record.get('source', SOURCE_SMS_SCAN),
        )


def is_sms_record(record: Mapping[str, Any]) -> bool:
    """True for records produced by an SMS scan rather than manual entry."""
    if record.get('source') == SOURCE_SMS_SCAN:
        return True
    return str(record.get('id', '')).startswith(SMS_ID_PREFIX)
