"""
Unit tests for transaction identity and assembly.

Reference ids below were produced by the mobile app's own id function, so
any drift here breaks de-duplication against already-persisted records.
"""
from datetime import datetime, timezone

import pytest

from src.common.models import ClassifiedFields, RawMessage, RECEIVED, SENT, SOURCE_SMS_SCAN
from src.sms.identity import (
    assemble,
    composition_key,
    format_number,
    generate_transaction_id,
    rolling_hash,
)

MPESA_BODY = "MPESA Confirmed. Ksh 1,500.00 received from JOHN DOE 254712345678 on 1/1/24"
COOP_BODY = "Your account has been credited with Ksh 3,200 from JANE N. Co-op Bank"


# =============================================================================
# TEST: rolling_hash
# =============================================================================

class TestRollingHash:

    @pytest.mark.parametrize("text,expected", [
        ("", 0),
        ("a", 97),
        ("ab", 3105),
        ("hello world", 1794106052),
        (MPESA_BODY, -1920099614),
    ])
    def test_matches_reference(self, text, expected):
        assert rolling_hash(text) == expected

    def test_stays_in_int32_range(self):
        h = rolling_hash("x" * 10_000)
        assert -2**31 <= h < 2**31


# =============================================================================
# TEST: format_number / composition_key
# =============================================================================

class TestCompositionKey:

    @pytest.mark.parametrize("value,expected", [
        (1500.0, "1500"),
        (99.5, "99.5"),
        (1250.75, "1250.75"),
        (1704067200000, "1704067200000"),
        ("1704067200000", "1704067200000"),
    ])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_key_layout(self):
        message = RawMessage(body="body", received_at=42, external_id="9")
        assert composition_key(message, "M-Pesa", 10.0) == "9_body_42_M-Pesa_10"

    def test_missing_external_id_is_empty(self):
        message = RawMessage(body="body", received_at=42)
        assert composition_key(message, "KCB", 1.5) == "_body_42_KCB_1.5"


# =============================================================================
# TEST: generate_transaction_id
# =============================================================================

class TestGenerateTransactionId:

    def test_with_external_id(self):
        message = RawMessage(body=MPESA_BODY, received_at=1704067200000, external_id="101")
        assert generate_transaction_id(message, "M-Pesa", 1500.0) == "tx_1812991580_M-Pesa"

    def test_without_external_id(self):
        message = RawMessage(body=MPESA_BODY, received_at=1704067200000)
        assert generate_transaction_id(message, "M-Pesa", 1500.0) == "tx_353887722_M-Pesa"

    def test_string_timestamp_and_spaced_provider(self):
        message = RawMessage(body=COOP_BODY, received_at="1704153600000")
        assert generate_transaction_id(message, "Co-operative Bank", 3200.0) == "tx_1025104993_Co-operative_Bank"

    def test_fractional_amount(self):
        message = RawMessage(body="KCB: Ksh 99.50 paid", received_at=1, external_id="7")
        assert generate_transaction_id(message, "Unknown Bank", 99.5) == "tx_2147329838_Unknown_Bank"

    def test_astral_characters_hash_as_utf16(self):
        message = RawMessage(body="Ksh 12.5 📱 from X 1", received_at=5)
        assert generate_transaction_id(message, "M-Pesa", 12.5) == "tx_1510661599_M-Pesa"

    def test_empty_and_absent_external_id_agree(self):
        a = RawMessage(body=MPESA_BODY, received_at=1704067200000, external_id=None)
        b = RawMessage(body=MPESA_BODY, received_at=1704067200000, external_id="")
        assert generate_transaction_id(a, "M-Pesa", 1500.0) == generate_transaction_id(b, "M-Pesa", 1500.0)

    def test_different_external_ids_differ(self):
        a = RawMessage(body=MPESA_BODY, received_at=1704067200000, external_id="1")
        b = RawMessage(body=MPESA_BODY, received_at=1704067200000, external_id="2")
        assert generate_transaction_id(a, "M-Pesa", 1500.0) != generate_transaction_id(b, "M-Pesa", 1500.0)


# =============================================================================
# TEST: assemble
# =============================================================================

class TestAssemble:

    def test_received_transaction(self):
        message = RawMessage(body=MPESA_BODY, received_at=1704067200000)
        fields = ClassifiedFields("M-Pesa", 1500.0, RECEIVED, "JOHN DOE", "254712345678", "mpesa")

        tx = assemble(message, fields)

        assert tx.id == "tx_353887722_M-Pesa"
        assert tx.amount == 1500.0
        assert tx.sender == "JOHN DOE"
        assert tx.phone == "254712345678"
        assert tx.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert tx.provider_type == "mpesa"
        assert tx.transaction_direction == RECEIVED
        assert tx.raw_message == MPESA_BODY
        assert tx.bank == "M-Pesa"
        assert tx.source_tag == SOURCE_SMS_SCAN

    def test_sent_transaction_is_negative(self):
        body = "You have paid to SUPERMARKET XYZ 0722000111 Ksh 450 via M-PESA"
        message = RawMessage(body=body, received_at=1704067200000)
        fields = ClassifiedFields("M-Pesa", 450.0, SENT, "SUPERMARKET XYZ", "0722000111", "mpesa")

        tx = assemble(message, fields)

        assert tx.amount == -450.0
        assert tx.id == "tx_1150279033_M-Pesa"

    def test_id_uses_unsigned_amount(self):
        message = RawMessage(body="Confirmed. Ksh200 sent for airtime for 0733111222", received_at=1704067200000)
        fields = ClassifiedFields("M-Pesa", 200.0, SENT, "Airtime Purchase", "0733111222", "mpesa")
        assert assemble(message, fields).id == "tx_1684737636_M-Pesa"

    def test_assemble_is_idempotent(self):
        message = RawMessage(body=COOP_BODY, received_at="1704153600000", external_id="55")
        fields = ClassifiedFields("Co-operative Bank", 3200.0, RECEIVED, "JANE N", None, "coop")
        assert assemble(message, fields) == assemble(message, fields)
