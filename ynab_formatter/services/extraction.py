"""
Purpose:
- The upload page's whole pipeline: prompt -> provider -> parse -> normalize.
- Raises provider/response errors untouched; the route maps them to HTTP codes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from loguru import logger

from ..llm.providers import ExtractionRequest, Usage, VisionProvider
from ..schemas import Transaction
from .normalize import normalize_transactions
from .parsing import parse_transactions
from .statement_input import StatementInput


@dataclass
class ExtractionResult:
    transactions: List[Transaction]
    provider: str
    model: str
    usage: Usage = field(default_factory=Usage)
    dropped: int = 0

    @property
    def warning(self) -> Optional[str]:
        if not self.transactions:
            return "No transactions were found in the statement"
        if self.dropped:
            return f"Skipped {self.dropped} entries that were not transactions"
        return None


async def extract_statement(
    provider: VisionProvider,
    statement: StatementInput,
    *,
    today: date,
    custom_prompt: Optional[str] = None,
    model: Optional[str] = None,
) -> ExtractionResult:
    reply = await provider.complete(
        ExtractionRequest(statement=statement, today=today, custom_prompt=custom_prompt, model=model)
    )
    logger.debug(f"AI Response: {reply.text[:500]}")

    raw = parse_transactions(reply.text)
    transactions, dropped = normalize_transactions(raw)
    logger.info(f"Parsed {len(transactions)} transactions ({provider.label}, {reply.model})")
    if dropped:
        logger.warning(f"Dropped {dropped} non-object entries from {provider.label} reply")

    return ExtractionResult(
        transactions=transactions,
        provider=provider.name,
        model=reply.model,
        usage=reply.usage,
        dropped=dropped,
    )
