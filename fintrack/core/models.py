# fintrack/core/models.py
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional

TransactionType = Literal["income", "expense"]
Frequency = Literal["daily", "weekly", "monthly", "yearly"]

TRANSACTION_TYPES = ("income", "expense")
FREQUENCIES = ("daily", "weekly", "monthly", "yearly")


@dataclass
class Transaction:
    id: str
    type: TransactionType
    amount: float
    category: str
    description: str
    date: date
    recurring_id: Optional[str] = None  # set when produced by a recurring rule


@dataclass
class RecurringRule:
    id: str
    type: TransactionType
    amount: float
    category: str
    description: str
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None        # inclusive
    last_generated: Optional[date] = None
    is_active: bool = True
