"""
Purpose:
- Build the natural-language extraction prompts sent to every provider.
- All date/merchant/currency judgement lives in these strings, not in code.

Design:
- One JSON prompt shared by hosted providers (and the model arena).
- Local models get a simpler two-step path: statement -> CSV, then CSV -> JSON.
- `source` switches wording between an uploaded image and extracted PDF text.
"""

from __future__ import annotations
from datetime import date
from typing import Optional

SYSTEM_PROMPT = (
    "You are a financial data extraction assistant. "
    "Extract credit card transactions and return them in JSON format."
)

CSV_HEADER = "Date,Payee,Memo,Outflow,Inflow"


def _subject(source: str) -> str:
    return "this statement image" if source == "image" else "the statement text below"


def _custom_block(custom_prompt: Optional[str]) -> str:
    if not custom_prompt or not custom_prompt.strip():
        return ""
    return f"\nAdditional instructions from user:\n{custom_prompt.strip()}"


def build_extraction_prompt(today: date, custom_prompt: Optional[str] = None, source: str = "image") -> str:
    """
    JSON-array extraction prompt with the ambiguity rules for dates and years.
    """
    return f"""Extract all credit card transactions from {_subject(source)}.

Today's date: {today.isoformat()}

Return a JSON array where each transaction has these fields:
- date: YYYY-MM-DD format (use transaction date, not posting date)
- payee: merchant name
- memo: foreign currency (e.g. "USD 50.00") or location only, leave empty if none
- outflow: debit amount with $ (e.g. "$123.45") or empty string ""
- inflow: credit amount with $ (e.g. "$50.00") or empty string ""

Rules:
- Date format: Intelligently parse dates which may be in DD/MM/YYYY, MM/DD/YYYY or other formats
- For ambiguous dates (e.g., 04/06 could be April 6 or June 4):
  * Prefer DD/MM interpretation when both are valid
  * Choose the date closest to {today.month}/{today.year}
- Each transaction has EITHER outflow OR inflow, never both
- If the statement omits the year, assume the entire statement belongs to a single year. Use any printed statement year if present; otherwise keep the same inferred year for every row even when the month number wraps around.
- Do NOT include reference numbers in memo
{_custom_block(custom_prompt)}
Return ONLY the JSON array, no other text."""


def build_csv_prompt(today: date, custom_prompt: Optional[str] = None, source: str = "image") -> str:
    """
    Step 1 for local models: CSV is easier for small VLMs to get right than JSON.
    """
    return f"""Extract all credit card transactions from {_subject(source)} to CSV format.

Today's date: {today.isoformat()}

Create CSV with headers: {CSV_HEADER}

Rules:
- Date: Statements may use DD/MM/YYYY, MM/DD/YYYY, or other formats - intelligently parse to YYYY-MM-DD output
- When date format is ambiguous (e.g., 04/06/2025 could be April 6 or June 4), use these heuristics:
  * Prefer DD/MM interpretation if both are valid dates
  * Choose the date closest to current month ({today.month}/{today.year})
  * Example: if it's September, 04/06 is more likely June 4th than April 6th
- If the statement omits the year entirely, infer a single consistent year for all rows based on any printed year (e.g. statement period). When no year is visible anywhere, keep the same year as the first transaction you extract and do not decrement the year when the month number decreases.
- Payee: merchant/company name
- Memo: Only foreign currency (e.g. "USD 50.00") or location if different from payee
- Outflow: charges/debits as positive amount with $ (e.g. "$123.45")
- Inflow: credits/payments as positive amount with $ (e.g. "$50.00")
- Each row has EITHER Outflow OR Inflow, not both
- Extract EVERY transaction visible
{_custom_block(custom_prompt)}
Output the CSV starting with the header line."""


def build_csv_to_json_prompt(csv_text: str) -> str:
    """Step 2 for local models: text-only reshaping of the step-1 CSV."""
    return f"""Convert this CSV to JSON array. Each row becomes an object with lowercase keys: date, payee, memo, outflow, inflow.
Empty cells become empty strings "".

CSV:
{csv_text}

Output only the JSON array starting with [ and ending with ]"""


def with_statement_text(prompt: str, statement_text: Optional[str]) -> str:
    """Append extracted PDF text to a prompt (no-op for image input)."""
    if not statement_text:
        return prompt
    return f"{prompt}\n\nStatement text:\n{statement_text}"
