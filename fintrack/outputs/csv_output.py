# fintrack/outputs/csv_output.py

import os
import csv
import logging
from decimal import Decimal
from fintrack.outputs.base import BaseOutput

logger = logging.getLogger(__name__)

HEADER = ['date', 'type', 'category', 'description', 'amount', 'recurring_id']


class CSVOutput(BaseOutput):
    """
    Writes transactions to a master CSV file named Transactions<Year>.csv,
    keyed by transaction id and sorted by date (oldest to latest).
    """
    def __init__(self, config):
        self.config     = config
        self.output_dir = config.get('output_dir', 'data')
        os.makedirs(self.output_dir, exist_ok=True)

    def append(self, transactions):
        if not transactions:
            logger.info("No transactions to write.")
            return None

        records = {}
        for tx in transactions:
            records[tx.id] = {
                'date':         tx.date.isoformat(),
                'type':         tx.type,
                'category':     str(tx.category).strip(),
                'description':  str(tx.description).strip(),
                'amount':       f"{Decimal(str(tx.amount)):.2f}",
                'recurring_id': tx.recurring_id or '',
            }

        sorted_records = sorted(records.values(), key=lambda r: r['date'])
        year = sorted_records[0]['date'][:4]

        out_path = os.path.join(self.output_dir, f"Transactions{year}.csv")
        with open(out_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(HEADER)
            for row in sorted_records:
                writer.writerow([row[col] for col in HEADER])

        logger.info("Written %d transactions to %s", len(sorted_records), out_path)
        return out_path
