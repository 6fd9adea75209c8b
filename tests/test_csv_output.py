import csv
from datetime import date

from fintrack.core.models import Transaction
from fintrack.outputs import get_output
from fintrack.outputs.csv_output import CSVOutput


def _txs():
    return [
        Transaction(id="rent-1", type="expense", amount=1200, category="Bills & Utilities",
                    description="Rent (Auto)", date=date(2024, 3, 1), recurring_id="rent"),
        Transaction(id="m1", type="income", amount=10.5, category="Gift",
                    description=" Birthday ", date=date(2024, 2, 1)),
        Transaction(id="m1", type="income", amount=10.5, category="Gift",
                    description=" Birthday ", date=date(2024, 2, 1)),
    ]


def test_csv_output_sorted_and_keyed_by_id(tmp_path):
    cfg = {
        "output_dir": str(tmp_path / "data"),
        "output_modules": {"csv": "fintrack.outputs.csv_output.CSVOutput"},
    }
    outputter = get_output("csv", cfg)
    assert isinstance(outputter, CSVOutput)

    out_path = outputter.append(_txs())
    assert out_path == str(tmp_path / "data" / "Transactions2024.csv")
    with open(out_path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["date", "type", "category", "description", "amount", "recurring_id"]
    assert rows[1:] == [
        ["2024-02-01", "income", "Gift", "Birthday", "10.50", ""],
        ["2024-03-01", "expense", "Bills & Utilities", "Rent (Auto)", "1200.00", "rent"],
    ]


def test_csv_output_with_nothing_to_write(tmp_path):
    outputter = CSVOutput({"output_dir": str(tmp_path)})
    assert outputter.append([]) is None
    assert list(tmp_path.iterdir()) == []
