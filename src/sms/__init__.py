"""
SMS Transaction Parsing Module

- Relevance gate and provider table (M-Pesa, Equity, Co-op, generic banks)
- Deterministic transaction ids and record assembly
- Batch scan, merge into the persisted set, scan service
"""

from .classifier import MessageClassifier
from .identity import assemble, generate_transaction_id, rolling_hash
from .scanner import scan, parse_message
from .consolidator import TransactionConsolidator, summarize, to_dataframe
from .store import JsonTransactionStore
from .service import SmsScanService, ScanReport, scan_status
from .exceptions import InvalidMessageBatchError, SmsPermissionDeniedError, InboxReadError

__all__ = [
    'MessageClassifier',
    'assemble',
    'generate_transaction_id',
    'rolling_hash',
    'scan',
    'parse_message',
    'TransactionConsolidator',
    'to_dataframe',
    'summarize',
    'JsonTransactionStore',
    'SmsScanService',
    'ScanReport',
    'scan_status',
    'InvalidMessageBatchError',
    'SmsPermissionDeniedError',
    'InboxReadError',
]
