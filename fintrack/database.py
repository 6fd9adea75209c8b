import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Tuple

from fintrack.core.models import RecurringRule, Transaction
from fintrack.recurring import GenerationResult, generate_due_transactions

logger = logging.getLogger(__name__)


def _init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            id TEXT PRIMARY KEY,
            type TEXT NOT NULL,
            amount REAL NOT NULL,
            category TEXT NOT NULL,
            description TEXT NOT NULL,
            date TEXT NOT NULL,
            recurring_id TEXT
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS recurring_rules (
            id TEXT PRIMARY KEY,
            position INTEGER NOT NULL,
            type TEXT NOT NULL,
            amount REAL NOT NULL,
            category TEXT NOT NULL,
            description TEXT NOT NULL,
            frequency TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT,
            last_generated TEXT,
            is_active INTEGER NOT NULL DEFAULT 1
        )
        """
    )
    conn.commit()


def _connect(db_path: str) -> sqlite3.Connection:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    _init_db(conn)
    return conn


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _tx_row(tx: Transaction) -> tuple:
    return (
        tx.id,
        tx.type,
        float(tx.amount),
        tx.category,
        tx.description,
        tx.date.isoformat(),
        tx.recurring_id,
    )


def _row_tx(row) -> Transaction:
    return Transaction(
        id=row[0],
        type=row[1],
        amount=float(row[2]),
        category=row[3],
        description=row[4],
        date=date.fromisoformat(row[5]),
        recurring_id=row[6],
    )


def _row_rule(row) -> RecurringRule:
    return RecurringRule(
        id=row[0],
        type=row[1],
        amount=float(row[2]),
        category=row[3],
        description=row[4],
        frequency=row[5],
        start_date=date.fromisoformat(row[6]),
        end_date=_from_iso(row[7]),
        last_generated=_from_iso(row[8]),
        is_active=bool(row[9]),
    )


_RULE_COLUMNS = (
    "id, type, amount, category, description, frequency, "
    "start_date, end_date, last_generated, is_active"
)


def _insert_transactions(conn: sqlite3.Connection, transactions: Iterable[Transaction]) -> int:
    before = conn.total_changes
    conn.executemany(
        """
        INSERT OR IGNORE INTO transactions
        (id, type, amount, category, description, date, recurring_id)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        [_tx_row(tx) for tx in transactions],
    )
    return conn.total_changes - before


def _upsert_rules(conn: sqlite3.Connection, rules: List[RecurringRule], offset: int = 0) -> None:
    conn.executemany(
        f"""
        INSERT INTO recurring_rules (position, {_RULE_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            type = excluded.type,
            amount = excluded.amount,
            category = excluded.category,
            description = excluded.description,
            frequency = excluded.frequency,
            start_date = excluded.start_date,
            end_date = excluded.end_date,
            last_generated = CASE
                WHEN recurring_rules.last_generated IS NULL
                  OR excluded.last_generated > recurring_rules.last_generated
                THEN excluded.last_generated
                ELSE recurring_rules.last_generated
            END,
            is_active = excluded.is_active
        """,
        [
            (
                offset + i,
                r.id,
                r.type,
                float(r.amount),
                r.category,
                r.description,
                r.frequency,
                r.start_date.isoformat(),
                _iso(r.end_date),
                _iso(r.last_generated),
                int(r.is_active),
            )
            for i, r in enumerate(rules)
        ],
    )


def append_transactions(transactions: Iterable[Transaction], db_path: str) -> int:
    """Persist transactions, ignoring ids that are already stored.

    Returns the number of rows actually inserted.
    """
    transactions = list(transactions)
    if not transactions:
        return 0
    conn = _connect(db_path)
    try:
        inserted = _insert_transactions(conn, transactions)
        conn.commit()
        return inserted
    finally:
        conn.close()


def _build_filters(
    start_date: date | None,
    end_date: date | None,
    category: str | None,
    type_: str | None = None,
) -> tuple[str, list[str]]:
    conditions: list[str] = []
    params: list[str] = []
    if start_date:
        conditions.append("date >= ?")
        params.append(start_date.isoformat())
    if end_date:
        conditions.append("date <= ?")
        params.append(end_date.isoformat())
    if category:
        conditions.append("category = ?")
        params.append(category)
    if type_:
        conditions.append("type = ?")
        params.append(type_)
    where = " WHERE " + " AND ".join(conditions) if conditions else ""
    return where, params


def fetch_transactions(
    db_path: str,
    start_date: date | None = None,
    end_date: date | None = None,
    category: str | None = None,
    type_: str | None = None,
) -> List[Transaction]:
    """Retrieve transactions ordered by date.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.
    start_date, end_date:
        Optional inclusive date bounds.
    category:
        Optional category name to filter on.
    type_:
        Optional ``income`` or ``expense`` filter.
    """
    if not Path(db_path).exists():
        return []
    conn = _connect(db_path)
    try:
        where, params = _build_filters(start_date, end_date, category, type_)
        rows = conn.execute(
            "SELECT id, type, amount, category, description, date, recurring_id "
            f"FROM transactions{where} ORDER BY date, id",
            params,
        ).fetchall()
        return [_row_tx(r) for r in rows]
    finally:
        conn.close()


def save_rules(rules: Iterable[RecurringRule], db_path: str) -> None:
    """Insert or update rules, appending new ones after the stored ones."""
    rules = list(rules)
    conn = _connect(db_path)
    try:
        existing = {row[0]: row[1] for row in conn.execute("SELECT id, position FROM recurring_rules")}
        offset = max(existing.values(), default=-1) + 1
        for i, rule in enumerate(rules):
            position = existing.get(rule.id, offset + i)
            _upsert_rules(conn, [rule], offset=position)
        conn.commit()
    finally:
        conn.close()


def fetch_rules(db_path: str) -> List[RecurringRule]:
    if not Path(db_path).exists():
        return []
    conn = _connect(db_path)
    try:
        rows = conn.execute(
            f"SELECT {_RULE_COLUMNS} FROM recurring_rules ORDER BY position, id"
        ).fetchall()
        return [_row_rule(r) for r in rows]
    finally:
        conn.close()


def set_rule_active(db_path: str, rule_id: str, is_active: bool) -> bool:
    """Pause or resume a rule. Returns False when the id is unknown."""
    conn = _connect(db_path)
    try:
        cur = conn.execute(
            "UPDATE recurring_rules SET is_active = ? WHERE id = ?",
            (int(is_active), rule_id),
        )
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def delete_rule(db_path: str, rule_id: str) -> int:
    """Delete a rule together with every transaction it generated.

    Returns the number of transactions removed. Raises ``KeyError`` when the
    rule does not exist.
    """
    conn = _connect(db_path)
    try:
        cur = conn.execute("DELETE FROM recurring_rules WHERE id = ?", (rule_id,))
        if cur.rowcount == 0:
            conn.rollback()
            raise KeyError(rule_id)
        removed = conn.execute(
            "DELETE FROM transactions WHERE recurring_id = ?", (rule_id,)
        ).rowcount
        conn.commit()
        logger.info("Deleted rule %s and %d generated transaction(s)", rule_id, removed)
        return removed
    finally:
        conn.close()


def delete_transaction(db_path: str, tx_id: str) -> bool:
    """Delete a single transaction. Returns False when the id is unknown.

    A generated occurrence stays deleted as long as its rule's
    ``last_generated`` is on or after its date.
    """
    if not Path(db_path).exists():
        return False
    conn = _connect(db_path)
    try:
        cur = conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def reconcile(db_path: str, today=None, dry_run: bool = False) -> GenerationResult:
    """Run one catch-up pass over the stored rules and persist the result.

    New transactions and the rules' ``last_generated`` bookkeeping are written
    in a single commit, so the next call observes both and emits nothing
    further for the same day.
    """
    conn = _connect(db_path)
    try:
        rule_rows = conn.execute(
            f"SELECT {_RULE_COLUMNS}, position FROM recurring_rules ORDER BY position, id"
        ).fetchall()
        rules = [_row_rule(r[:10]) for r in rule_rows]
        positions = {r[0]: r[10] for r in rule_rows}
        existing = [
            _row_tx(r)
            for r in conn.execute(
                "SELECT id, type, amount, category, description, date, recurring_id "
                "FROM transactions WHERE recurring_id IS NOT NULL"
            )
        ]

        result = generate_due_transactions(rules, existing, today=today)
        if dry_run or not result.transactions:
            return result

        _insert_transactions(conn, result.transactions)
        for before, after in zip(rules, result.rules):
            if after is not before:
                _upsert_rules(conn, [after], offset=positions[after.id])
        conn.commit()
        logger.info(
            "Stored %d generated transaction(s) in %s", len(result.transactions), db_path
        )
        return result
    finally:
        conn.close()


def summarize_by_category(
    db_path: str,
    start_date: date | None = None,
    end_date: date | None = None,
    type_: str | None = None,
) -> List[Dict[str, object]]:
    """Aggregate totals grouped by type and category."""

    if not Path(db_path).exists():
        return []
    conn = _connect(db_path)
    try:
        where, params = _build_filters(start_date, end_date, None, type_)
        rows = conn.execute(
            f"""
            SELECT type, category,
                   SUM(amount) AS total,
                   COUNT(*) AS count
            FROM transactions
            {where}
            GROUP BY type, category
            ORDER BY type, total DESC
            """,
            params,
        ).fetchall()
        return [
            {
                "type": row[0],
                "category": row[1],
                "total": float(row[2] or 0.0),
                "transactions": int(row[3]),
            }
            for row in rows
        ]
    finally:
        conn.close()


_PERIOD_EXPRESSIONS: Dict[str, str] = {
    "month": "strftime('%Y-%m', date)",
    "year": "strftime('%Y', date)",
}


def summarize_by_period(
    db_path: str,
    period: Literal["month", "year"],
    start_date: date | None = None,
    end_date: date | None = None,
    category: str | None = None,
) -> List[Dict[str, object]]:
    """Income, expenses and net balance grouped by a time period."""

    expr = _PERIOD_EXPRESSIONS[period]
    if not Path(db_path).exists():
        return []
    conn = _connect(db_path)
    try:
        where, params = _build_filters(start_date, end_date, category)
        rows = conn.execute(
            f"""
            SELECT {expr} AS period,
                   COALESCE(SUM(CASE WHEN type = 'income' THEN amount END), 0.0),
                   COALESCE(SUM(CASE WHEN type = 'expense' THEN amount END), 0.0),
                   COUNT(*) AS count
            FROM transactions
            {where}
            GROUP BY period
            ORDER BY period
            """,
            params,
        ).fetchall()
        return [
            {
                "period": row[0],
                "income": float(row[1]),
                "expenses": float(row[2]),
                "balance": float(row[1]) - float(row[2]),
                "transactions": int(row[3]),
            }
            for row in rows
        ]
    finally:
        conn.close()


def _totals(conn: sqlite3.Connection, where: str, params: list[str]) -> Tuple[float, float, int]:
    row = conn.execute(
        f"""
        SELECT COALESCE(SUM(CASE WHEN type = 'income' THEN amount END), 0.0),
               COALESCE(SUM(CASE WHEN type = 'expense' THEN amount END), 0.0),
               COUNT(*)
        FROM transactions
        {where}
        """,
        params,
    ).fetchone()
    return float(row[0]), float(row[1]), int(row[2])


def overview_metrics(
    db_path: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Dict[str, object]:
    """Headline income, expense and balance figures for a date range."""
    if not Path(db_path).exists():
        return {"income": 0.0, "expenses": 0.0, "balance": 0.0, "transactions": 0}
    conn = _connect(db_path)
    try:
        where, params = _build_filters(start_date, end_date, None)
        income, expenses, count = _totals(conn, where, params)
        return {
            "income": income,
            "expenses": expenses,
            "balance": income - expenses,
            "transactions": count,
        }
    finally:
        conn.close()
