# fintrack/rules.py
from __future__ import annotations

from typing import List

import yaml

from fintrack.core.dates import to_day
from fintrack.core.models import FREQUENCIES, TRANSACTION_TYPES, RecurringRule

_REQUIRED = ("id", "type", "amount", "frequency", "start_date")


def _parse_date(value, field_name, entry):
    if value is None:
        return None
    try:
        return to_day(value)
    except ValueError:
        raise ValueError(f"Unrecognized {field_name} in recurring rule: {entry}") from None


def validate_rule(entry: dict) -> RecurringRule:
    """Build a RecurringRule from a mapping, rejecting malformed entries."""
    for field_name in _REQUIRED:
        if entry.get(field_name) in (None, ""):
            raise ValueError(f"Missing '{field_name}' in recurring rule: {entry}")

    type_ = entry["type"]
    if type_ not in TRANSACTION_TYPES:
        raise ValueError(f"Unsupported type '{type_}' in recurring rule: {entry}")
    frequency = entry["frequency"]
    if frequency not in FREQUENCIES:
        raise ValueError(f"Unsupported frequency '{frequency}' in recurring rule: {entry}")

    amount = float(entry["amount"])
    if amount <= 0:
        raise ValueError(f"Recurring rules require a positive 'amount': {entry}")

    is_active = entry.get("is_active", True)
    if not isinstance(is_active, bool):
        raise ValueError(f"Recurring rules require a boolean 'is_active': {entry}")

    return RecurringRule(
        id=str(entry["id"]),
        type=type_,
        amount=amount,
        category=entry.get("category", "Other"),
        description=entry.get("description", ""),
        frequency=frequency,
        start_date=_parse_date(entry["start_date"], "start_date", entry),
        end_date=_parse_date(entry.get("end_date"), "end_date", entry),
        last_generated=_parse_date(entry.get("last_generated"), "last_generated", entry),
        is_active=is_active,
    )


def load_rules(path) -> List[RecurringRule]:
    """Load recurring rules from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or []

    rules = [validate_rule(entry) for entry in data]
    seen = set()
    for rule in rules:
        if rule.id in seen:
            raise ValueError(f"Duplicate recurring rule id '{rule.id}'.")
        seen.add(rule.id)
    return rules
