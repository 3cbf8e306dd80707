import pandas as pd
from typing import Iterable, List, Mapping, Sequence, Tuple

from src.common.models import Transaction

FRAME_COLUMNS = [
    'id', 'amount', 'sender', 'phone', 'timestamp', 'provider_type',
    'transaction_direction', 'raw_message', 'bank', 'source_tag',
]


def to_dataframe(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Transactions as a DataFrame for report consumers."""
    rows = [tx.to_dict() for tx in transactions]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df['timestamp'] = pd.to_datetime(df['timestamp'], utc=True)
    df['amount'] = pd.to_numeric(df['amount'])
    return df


class TransactionConsolidator:
    @staticmethod
    def merge(existing: Sequence[Mapping], incoming: Iterable[Transaction]) -> Tuple[List[Mapping], List[Transaction]]:
        """
        Merge freshly scanned transactions into persisted records.

        Ids already present win, so re-merging the same scan adds nothing and
        never overwrites a record another subsystem has updated. New records
        go in front, newest first, matching how the app stores them.

        Returns:
            (merged_records, added_transactions)
        """
        seen = {record.get('id') for record in existing}
        added = []
        for tx in incoming:
            if tx.id in seen:
                continue
            seen.add(tx.id)
            added.append(tx)

        added.sort(key=lambda tx: tx.timestamp, reverse=True)
        merged = [tx.to_record() for tx in added] + list(existing)
        return merged, added

    @staticmethod
    def consolidate(dataframes: list[pd.DataFrame]) -> pd.DataFrame:
        """Combine transaction frames, keeping the first row for each id."""
        if not dataframes:
            return pd.DataFrame(columns=FRAME_COLUMNS)

        combined_df = pd.concat(dataframes, ignore_index=True)
        combined_df['timestamp'] = pd.to_datetime(combined_df['timestamp'], utc=True)
        combined_df['amount'] = pd.to_numeric(combined_df['amount'])

        deduplicated_df = combined_df.drop_duplicates(subset=['id'], keep='first')
        return deduplicated_df.sort_values(by='timestamp', ascending=False, kind='stable').reset_index(drop=True)


SUMMARY_COLUMNS = ['bank', 'count', 'received', 'sent', 'net']


def summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Per-provider totals. 'sent' is reported as a positive outflow."""
    if df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    flows = df.assign(
        received=df['amount'].clip(lower=0),
        sent=(-df['amount']).clip(lower=0),
    )
    summary = flows.groupby('bank', sort=True).agg(
        count=('id', 'size'),
        received=('received', 'sum'),
        sent=('sent', 'sum'),
        net=('amount', 'sum'),
    )
    return summary.reset_index()[SUMMARY_COLUMNS]
