# fintrack/recurring.py
from __future__ import annotations

import logging
from calendar import timegm
from dataclasses import replace
from datetime import date
from typing import Iterable, List, NamedTuple, Optional

from fintrack.core.dates import step, to_day
from fintrack.core.models import RecurringRule, Transaction

logger = logging.getLogger(__name__)

AUTO_SUFFIX = " (Auto)"


class GenerationResult(NamedTuple):
    transactions: List[Transaction]
    rules: List[RecurringRule]


def transaction_id(rule_id: str, day: date) -> str:
    """Deterministic id for the occurrence of *rule_id* on *day*."""
    epoch_ms = timegm(to_day(day).timetuple()) * 1000
    return f"{rule_id}-{epoch_ms}"


def occurrence_exists(transactions: Iterable[Transaction], rule_id: str, day) -> bool:
    target = to_day(day)
    return any(
        tx.recurring_id == rule_id and to_day(tx.date) == target
        for tx in transactions
    )


def _materialize(rule: RecurringRule, day: date) -> Transaction:
    return Transaction(
        id=transaction_id(rule.id, day),
        type=rule.type,
        amount=rule.amount,
        category=rule.category,
        description=f"{rule.description}{AUTO_SUFFIX}",
        date=day,
        recurring_id=rule.id,
    )


def _catch_up(
    rule: RecurringRule,
    existing: List[Transaction],
    today: date,
) -> tuple[List[Transaction], RecurringRule]:
    if not rule.is_active:
        logger.debug("Rule %s is paused; skipping", rule.id)
        return [], rule

    start = to_day(rule.start_date)
    end = to_day(rule.end_date) if rule.end_date else None
    cursor = to_day(rule.last_generated) if rule.last_generated else start

    # Once past its end date a rule only finishes the occurrences inside its
    # window; a schedule already beyond the end is lapsed for good.
    if end is not None and today > end and step(cursor, rule.frequency, anchor_day=start.day) > end:
        logger.debug("Rule %s lapsed on %s; skipping", rule.id, end)
        return [], rule

    generated: List[Transaction] = []
    last_reached: Optional[date] = None

    # step() is strictly monotonic, so the `> today` check always ends the loop.
    while True:
        candidate = step(cursor, rule.frequency, anchor_day=start.day)
        if candidate > today:
            break
        if candidate < start:
            cursor = candidate
            continue
        if end is not None and candidate > end:
            break

        if not occurrence_exists(existing, rule.id, candidate):
            generated.append(_materialize(rule, candidate))
        else:
            logger.debug("Rule %s already has an occurrence on %s", rule.id, candidate)

        last_reached = candidate
        cursor = candidate

    if not generated:
        return [], rule
    logger.debug(
        "Rule %s: %d occurrence(s) generated, last_generated -> %s",
        rule.id, len(generated), last_reached,
    )
    return generated, replace(rule, last_generated=last_reached)


def next_occurrence(rule: RecurringRule) -> Optional[date]:
    """Return the next date the rule will produce, or None once it has ended."""
    start = to_day(rule.start_date)
    end = to_day(rule.end_date) if rule.end_date else None
    candidate = step(rule.last_generated or start, rule.frequency, anchor_day=start.day)
    while candidate < start:
        candidate = step(candidate, rule.frequency, anchor_day=start.day)
    if end is not None and candidate > end:
        return None
    return candidate


def generate_due_transactions(
    rules: Iterable[RecurringRule],
    existing_transactions: Iterable[Transaction],
    today=None,
) -> GenerationResult:
    """Materialize every occurrence that is due up to *today* and not yet present.

    Rules are processed independently and returned in input order. A rule is
    returned as the same object unless this call emitted at least one
    transaction for it, in which case a copy with ``last_generated`` moved to
    the last occurrence reached is returned. Inputs are never mutated.
    """
    now = to_day(today) if today is not None else date.today()
    existing = list(existing_transactions)

    new_transactions: List[Transaction] = []
    updated_rules: List[RecurringRule] = []
    for rule in rules:
        generated, updated = _catch_up(rule, existing, now)
        new_transactions.extend(generated)
        updated_rules.append(updated)

    if new_transactions:
        logger.info(
            "Generated %d recurring transaction(s) up to %s",
            len(new_transactions), now.isoformat(),
        )
    return GenerationResult(new_transactions, updated_rules)
