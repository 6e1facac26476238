"""
Purpose:
- Serialize reviewed transactions to the CSV layout YNAB's file import expects.
"""

from __future__ import annotations
from datetime import date
from typing import Iterable
import csv
import io

from ..schemas import Transaction

CSV_FIELDS = ["Date", "Payee", "Memo", "Outflow", "Inflow"]


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(CSV_FIELDS)
    for tx in transactions:
        writer.writerow([tx.date, tx.payee, tx.memo, tx.outflow, tx.inflow])
    return buf.getvalue()


def export_filename(today: date) -> str:
    return f"statement_{today.isoformat()}.csv"
