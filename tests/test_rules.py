from datetime import date

import pytest

from fintrack.manual import load_manual_transactions
from fintrack.rules import load_rules, validate_rule


def write_rules(path):
    path.write_text(
        """\
- id: rent
  type: expense
  amount: 1200
  category: Bills & Utilities
  description: Rent
  frequency: monthly
  start_date: 2024-01-01
- id: salary
  type: income
  amount: 3000.50
  category: Salary
  description: Paycheck
  frequency: weekly
  start_date: "2024-01-05"
  end_date: 2024-06-30
  last_generated: 2024-02-02
  is_active: false
"""
    )


def test_load_rules(tmp_path):
    path = tmp_path / "recurring.yaml"
    write_rules(path)
    rent, salary = load_rules(path)

    assert rent.id == "rent"
    assert rent.amount == 1200.0
    assert rent.start_date == date(2024, 1, 1)
    assert rent.end_date is None
    assert rent.last_generated is None
    assert rent.is_active is True

    assert salary.type == "income"
    assert salary.frequency == "weekly"
    assert salary.start_date == date(2024, 1, 5)
    assert salary.end_date == date(2024, 6, 30)
    assert salary.last_generated == date(2024, 2, 2)
    assert salary.is_active is False


def test_load_rules_empty_file(tmp_path):
    path = tmp_path / "recurring.yaml"
    path.write_text("")
    assert load_rules(path) == []


def test_load_rules_rejects_duplicate_ids(tmp_path):
    path = tmp_path / "recurring.yaml"
    path.write_text(
        """\
- {id: a, type: expense, amount: 1, frequency: daily, start_date: 2024-01-01}
- {id: a, type: expense, amount: 2, frequency: daily, start_date: 2024-01-01}
"""
    )
    with pytest.raises(ValueError, match="Duplicate recurring rule id 'a'"):
        load_rules(path)


BASE = {"id": "r", "type": "expense", "amount": 10, "frequency": "monthly", "start_date": "2024-01-01"}


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"start_date": None}, "Missing 'start_date'"),
        ({"id": ""}, "Missing 'id'"),
        ({"type": "transfer"}, "Unsupported type 'transfer'"),
        ({"frequency": "hourly"}, "Unsupported frequency 'hourly'"),
        ({"amount": 0}, "positive 'amount'"),
        ({"amount": -4}, "positive 'amount'"),
        ({"end_date": "someday"}, "Unrecognized end_date"),
        ({"is_active": "false"}, "boolean 'is_active'"),
        ({"is_active": 0}, "boolean 'is_active'"),
    ],
)
def test_validate_rule_errors(overrides, message):
    entry = dict(BASE, **overrides)
    with pytest.raises(ValueError, match=message):
        validate_rule(entry)


def test_validate_rule_defaults():
    rule = validate_rule(dict(BASE))
    assert rule.category == "Other"
    assert rule.description == ""
    assert rule.is_active is True


def test_load_manual_transactions(tmp_path):
    path = tmp_path / "manual.yaml"
    path.write_text(
        """\
- date: 2024-05-04
  description: Farmers Market
  category: Food & Dining
  amount: 10
- id: bonus-2024
  date: 2024-05-10
  type: income
  category: Salary
  description: Bonus
  amount: 500
"""
    )
    market, bonus = load_manual_transactions(path)
    assert market.type == "expense"
    assert market.date == date(2024, 5, 4)
    assert market.amount == 10.0
    assert market.recurring_id is None
    assert market.id.startswith("manual-")
    assert load_manual_transactions(path)[0].id == market.id
    assert bonus.id == "bonus-2024"
    assert bonus.type == "income"


def test_load_manual_transactions_requires_date(tmp_path):
    path = tmp_path / "manual.yaml"
    path.write_text("- description: No date\n  amount: 3\n")
    with pytest.raises(ValueError, match="Missing 'date'"):
        load_manual_transactions(path)


def test_identical_manual_entries_keep_distinct_ids(tmp_path):
    path = tmp_path / "manual.yaml"
    path.write_text(
        """\
- {date: 2024-03-01, description: Coffee, category: Food & Dining, amount: 4.50}
- {date: 2024-03-01, description: Coffee, category: Food & Dining, amount: 4.50}
- {date: 2024-03-02, description: Coffee, category: Food & Dining, amount: 4.50}
"""
    )
    first, second, third = load_manual_transactions(path)
    assert len({first.id, second.id, third.id}) == 3
    assert [tx.id for tx in load_manual_transactions(path)] == [first.id, second.id, third.id]
