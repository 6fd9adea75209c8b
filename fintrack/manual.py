# fintrack/manual.py
import hashlib
from collections import Counter

import yaml

from fintrack.core.dates import to_day
from fintrack.core.models import TRANSACTION_TYPES, Transaction


def _content_key(entry, day):
    return (
        f"{day.isoformat()}|{entry.get('type', 'expense')}|{entry.get('amount')}"
        f"|{entry.get('category', '')}|{entry.get('description', '')}"
    )


def _content_id(key, ordinal):
    # ordinal tells identical entries in one file apart; re-imports stay stable
    raw = f"{key}|{ordinal}"
    return "manual-" + hashlib.sha1(raw.encode("utf-8")).hexdigest()[:12]


def load_manual_transactions(path):
    """Load one-off transactions from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or []

    txs = []
    seen = Counter()
    for entry in data:
        date_value = entry.get('date')
        if not date_value:
            raise ValueError(f"Missing 'date' in manual entry: {entry}")
        type_ = entry.get('type', 'expense')
        if type_ not in TRANSACTION_TYPES:
            raise ValueError(f"Unsupported type '{type_}' in manual entry: {entry}")
        day = to_day(date_value)
        tx_id = entry.get('id')
        if not tx_id:
            key = _content_key(entry, day)
            tx_id = _content_id(key, seen[key])
            seen[key] += 1
        txs.append(
            Transaction(
                id=str(tx_id),
                type=type_,
                amount=float(entry.get('amount', 0.0)),
                category=entry.get('category', 'Other'),
                description=entry.get('description', ''),
                date=day,
            )
        )
    return txs
