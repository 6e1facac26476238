"""
Purpose:
- Reshape whatever keys a model returned into YNAB's Date/Payee/Memo/Outflow/Inflow.
- Tolerate alternate keys (merchant, details) and numeric amount + debit/credit type.
- Provide amount parsing/totals for the model arena comparisons.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Optional, Tuple
import re

from ..schemas import Transaction

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


def format_money(value: float) -> str:
    return f"${abs(value):.2f}"


def parse_amount(value: Any) -> Optional[float]:
    """
    "$1,234.56" -> 1234.56. Lenient like a browser parseFloat: trailing junk is ignored.
    Returns None when no number leads the string.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[$,\s]", "", str(value))
    m = _LEADING_NUMBER.match(cleaned)
    return float(m.group(0)) if m else None


def _text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    return value.strip() if isinstance(value, str) else str(value)


def _money(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return format_money(value) if value else ""
    return str(value).strip()


def normalize_transaction(raw: dict) -> Transaction:
    outflow = _money(raw.get("outflow"))
    inflow = _money(raw.get("inflow"))

    if not outflow and not inflow:
        amount = parse_amount(raw.get("amount"))
        if amount:
            kind = _text(raw.get("type")).lower()
            if kind == "credit" or (kind != "debit" and amount < 0):
                inflow = format_money(amount)
            else:
                outflow = format_money(amount)

    return Transaction(
        date=_text(raw.get("date")),
        payee=_text(raw.get("payee")) or _text(raw.get("merchant")),
        memo=_text(raw.get("memo")) or _text(raw.get("details")),
        outflow=outflow,
        inflow=inflow,
    )


def normalize_transactions(items: Iterable[Any]) -> Tuple[List[Transaction], int]:
    """Return (transactions, dropped) where dropped counts non-object entries."""
    kept: List[Transaction] = []
    dropped = 0
    for it in items:
        if not isinstance(it, dict):
            dropped += 1
            continue
        kept.append(normalize_transaction(it))
    return kept, dropped


def money_totals(transactions: Iterable[Transaction]) -> Tuple[float, float]:
    """(total_outflow, total_inflow), each rounded to cents; unparseable cells are skipped."""
    total_out = 0.0
    total_in = 0.0
    for tx in transactions:
        out = parse_amount(tx.outflow) if tx.outflow else None
        if out is not None:
            total_out += out
        inn = parse_amount(tx.inflow) if tx.inflow else None
        if inn is not None:
            total_in += inn
    return round(total_out, 2), round(total_in, 2)
