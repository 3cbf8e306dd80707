"""
Tests for merging scans into the persisted set and the JSON store.
"""
import json
from datetime import datetime, timezone

import pandas as pd
import pytest

from src.common.models import Transaction, is_sms_record
from src.sms.consolidator import TransactionConsolidator, summarize, to_dataframe
from src.sms.scanner import scan
from src.sms.store import JsonTransactionStore

INBOX = [
    {'_id': '2', 'body': "MPESA Confirmed. Ksh 1,500.00 received from JOHN DOE 254712345678 on 1/1/24",
     'date': 1704067200000},
    {'_id': '1', 'body': "You have paid to SUPERMARKET XYZ 0722000111 Ksh 450 via M-PESA",
     'date': 1704050000000},
]

MANUAL_RECORD = {
    'id': 'txn_1704000000000_abc123xyz',
    'type': 'sale',
    'amount': 300,
    'paymentMethod': 'cash',
    'timestamp': '2023-12-31T05:20:00.000Z',
}


@pytest.fixture
def transactions():
    return scan(INBOX)


# =============================================================================
# TEST: merge
# =============================================================================

class TestMerge:

    def test_adds_new_records_newest_first(self, transactions):
        merged, added = TransactionConsolidator.merge([], reversed(transactions))
        assert [r['id'] for r in merged] == [tx.id for tx in transactions]
        assert len(added) == 2

    def test_rescan_adds_nothing(self, transactions):
        merged, _ = TransactionConsolidator.merge([MANUAL_RECORD], transactions)
        merged_again, added = TransactionConsolidator.merge(merged, scan(INBOX))

        assert added == []
        assert merged_again == merged

    def test_existing_record_is_not_overwritten(self, transactions):
        edited = dict(transactions[0].to_record(), sender="Edited Name")
        merged, added = TransactionConsolidator.merge([edited], transactions)

        assert [tx.id for tx in added] == [transactions[1].id]
        assert [r for r in merged if r['id'] == edited['id']] == [edited]

    def test_duplicate_ids_within_one_scan(self, transactions):
        merged, added = TransactionConsolidator.merge([], transactions + transactions)
        assert len(merged) == 2
        assert len(added) == 2


# =============================================================================
# TEST: records
# =============================================================================

class TestRecords:

    def test_round_trip(self, transactions):
        tx = transactions[0]
        assert Transaction.from_record(tx.to_record()) == tx

    def test_record_shape(self, transactions):
        record = transactions[1].to_record()
        assert record['source'] == 'sms_scan'
        assert record['type'] == 'mpesa'
        assert record['transactionType'] == 'sent'
        assert record['amount'] == -450.0

    def test_source_distinction(self, transactions):
        assert is_sms_record(transactions[0].to_record())
        assert not is_sms_record(MANUAL_RECORD)


# =============================================================================
# TEST: DataFrames
# =============================================================================

class TestDataFrames:

    def test_to_dataframe(self, transactions):
        df = to_dataframe(transactions)
        assert list(df['amount']) == [1500.0, -450.0]
        assert df['timestamp'].iloc[0] == pd.Timestamp(datetime(2024, 1, 1, tzinfo=timezone.utc))

    def test_to_dataframe_empty(self):
        df = to_dataframe([])
        assert df.empty
        assert 'id' in df.columns

    def test_consolidate_drops_duplicate_ids(self, transactions):
        df = TransactionConsolidator.consolidate([to_dataframe(transactions), to_dataframe(scan(INBOX))])
        assert len(df) == 2
        assert df['id'].is_unique

    def test_consolidate_nothing(self):
        assert TransactionConsolidator.consolidate([]).empty


# =============================================================================
# TEST: JsonTransactionStore
# =============================================================================

class TestJsonTransactionStore:

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonTransactionStore(tmp_path / "none.json").load() == []

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "tx.json"
        path.write_text("{not json", encoding='utf-8')
        assert JsonTransactionStore(path).load() == []

    def test_failed_save_leaves_no_temp_file(self, tmp_path):
        path = tmp_path / "tx.json"
        store = JsonTransactionStore(path)
        store.save([MANUAL_RECORD])

        with pytest.raises(TypeError):
            store.save([{'id': 'bad', 'amount': object()}])

        assert not (tmp_path / "tx.json.tmp").exists()
        assert store.load() == [MANUAL_RECORD]

    def test_merge_scan_keeps_manual_records(self, tmp_path, transactions):
        path = tmp_path / "data" / "tx.json"
        store = JsonTransactionStore(path)
        store.save([MANUAL_RECORD])

        added = store.merge_scan(transactions)

        stored = json.loads(path.read_text(encoding='utf-8'))
        assert len(added) == 2
        assert stored[-1] == MANUAL_RECORD
        assert len(stored) == 3

    def test_merge_scan_twice(self, tmp_path, transactions):
        store = JsonTransactionStore(tmp_path / "tx.json")
        store.merge_scan(transactions)
        assert store.merge_scan(scan(INBOX)) == []
        assert len(store.load()) == 2

    def test_sms_transactions_skips_manual_and_malformed(self, tmp_path, transactions):
        store = JsonTransactionStore(tmp_path / "tx.json")
        store.save([MANUAL_RECORD, {'id': 'tx_1_M-Pesa', 'source': 'sms_scan'}])
        store.merge_scan(transactions)

        assert store.sms_transactions() == sorted(transactions, key=lambda tx: tx.timestamp, reverse=True)


# =============================================================================
# TEST: summaries
# =============================================================================

class TestSummarize:

    def test_per_provider_totals(self, transactions):
        extra = scan([{'body': "KCB: Ksh 5,000 has been debited from your account", 'date': 3}])
        summary = summarize(to_dataframe(transactions + extra))

        assert list(summary['bank']) == ["KCB", "M-Pesa"]
        mpesa = summary.set_index('bank').loc["M-Pesa"]
        assert mpesa['count'] == 2
        assert mpesa['received'] == 1500.0
        assert mpesa['sent'] == 450.0
        assert mpesa['net'] == 1050.0

    def test_empty(self):
        assert summarize(to_dataframe([])).empty
