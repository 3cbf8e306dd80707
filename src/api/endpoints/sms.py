from functools import lru_cache
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.common.config import ScannerSettings, load_settings
from src.common.logging_config import get_logger
from src.common.models import RawMessage
from src.sms.classifier import MessageClassifier
from src.sms.consolidator import TransactionConsolidator, summarize, to_dataframe
from src.sms.scanner import scan
from src.sms.store import JsonTransactionStore

router = APIRouter()
logger = get_logger("api.sms")


class MessageIn(BaseModel):
    body: str
    receivedAtEpochMillis: Union[int, str]
    externalId: Optional[Union[str, int]] = None

    def to_raw(self) -> RawMessage:
        return RawMessage(
            body=self.body,
            received_at=self.receivedAtEpochMillis,
            external_id=None if self.externalId is None else str(self.externalId),
        )


class ScanRequest(BaseModel):
    messages: List[MessageIn]
    merge: bool = False


@lru_cache
def get_settings() -> ScannerSettings:
    return load_settings()


def get_classifier(settings: ScannerSettings = Depends(get_settings)) -> MessageClassifier:
    return MessageClassifier(generic_default_direction=settings.generic_default_direction)


def get_store(settings: ScannerSettings = Depends(get_settings)) -> JsonTransactionStore:
    return JsonTransactionStore(settings.store_path)


@router.post("/classify")
def classify_message(message: MessageIn, classifier: MessageClassifier = Depends(get_classifier)):
    """Classify one SMS without building a transaction."""
    fields = classifier.classify(message.to_raw())
    if fields is None:
        return {"financial": False}
    return {
        "financial": True,
        "provider_name": fields.provider_name,
        "provider_type": fields.provider_type,
        "amount": fields.amount,
        "direction": fields.direction,
        "counterparty_name": fields.counterparty_name,
        "counterparty_phone": fields.counterparty_phone,
    }


@router.post("/scan")
def scan_messages(req: ScanRequest,
                  classifier: MessageClassifier = Depends(get_classifier),
                  store: JsonTransactionStore = Depends(get_store)):
    """Turn a batch of SMS into transactions, optionally merging them into the store."""
    transactions = scan([m.to_raw() for m in req.messages], classifier)

    added_count = None
    if req.merge:
        try:
            added_count = len(store.merge_scan(transactions))
        except OSError as e:
            logger.error(f"Store write failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Could not persist transactions: {e}")

    return {
        "messages_read": len(req.messages),
        "count": len(transactions),
        "added": added_count,
        "transactions": [tx.to_dict() for tx in transactions],
    }


class SummaryRequest(BaseModel):
    messages: List[MessageIn] = Field(default_factory=list)


@router.post("/summary")
def summarize_transactions(req: SummaryRequest,
                           classifier: MessageClassifier = Depends(get_classifier),
                           store: JsonTransactionStore = Depends(get_store)):
    """
    Per-provider totals over the stored SMS transactions plus any messages
    posted with the request. A message already stored is counted once.
    Nothing is written to the store.
    """
    scanned = scan([m.to_raw() for m in req.messages], classifier)
    combined = TransactionConsolidator.consolidate([
        to_dataframe(store.sms_transactions()),
        to_dataframe(scanned),
    ])
    summary = summarize(combined)
    return {
        "transactions": len(combined),
        "providers": summary.to_dict(orient='records'),
    }
