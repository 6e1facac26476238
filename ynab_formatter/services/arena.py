"""
Purpose:
- Model arena: send one statement image to many OpenRouter models at once and compare.
- Per-model failures never abort the run; they come back as results with `error` set.

Ranking / agreement:
- Consensus = most common transaction count among successful, non-empty results,
  if at least two exist and it is held by at least half of them.
- Results more than OUTLIER_TOLERANCE rows away from consensus are marked as outliers.
  Amount differences alone never make an outlier.
- Successful results first (fastest first), failed ones after.
"""

from __future__ import annotations
from collections import Counter
from datetime import date
from typing import Iterable, List, Optional
import asyncio
import math
import time

from loguru import logger

from ..llm.errors import ProviderError, ResponseError
from ..llm.providers import ExtractionRequest, OpenRouterProvider
from ..schemas import ArenaResponse, ArenaSummary, ModelResult, TokenUsage
from .normalize import money_totals, normalize_transactions
from .parsing import parse_transactions
from .statement_input import StatementInput

OUTLIER_TOLERANCE = 2


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


async def process_with_model(
    provider: OpenRouterProvider,
    model: str,
    statement: StatementInput,
    today: date,
) -> ModelResult:
    start = time.perf_counter()
    try:
        reply = await provider.complete(ExtractionRequest(statement=statement, today=today, model=model))
        logger.debug(f"{model} response: {reply.text[:200]}")
        transactions, _dropped = normalize_transactions(parse_transactions(reply.text))
    except ProviderError as e:
        logger.error(f"Error processing with {model}: {e.message}")
        return ModelResult(model=model, processing_time=_elapsed_ms(start), error=e.message)
    except ResponseError as e:
        logger.error(f"Error processing with {model}: {e.public_message} ({e})")
        return ModelResult(model=model, processing_time=_elapsed_ms(start), error=e.public_message)
    except Exception as e:
        logger.exception(f"Unexpected error processing with {model}")
        return ModelResult(model=model, processing_time=_elapsed_ms(start), error=str(e) or e.__class__.__name__)

    total_out, total_in = money_totals(transactions)
    return ModelResult(
        model=model,
        transactions=transactions,
        processing_time=_elapsed_ms(start),
        transaction_count=len(transactions),
        total_outflow=total_out,
        total_inflow=total_in,
        cost=reply.usage.cost,
        tokens=TokenUsage(prompt=reply.usage.prompt_tokens, completion=reply.usage.completion_tokens),
    )


def find_consensus(results: Iterable[ModelResult]) -> Optional[int]:
    ok = [r for r in results if not r.error and r.transaction_count > 0]
    if len(ok) < 2:
        return None
    freq = Counter(r.transaction_count for r in ok)
    # ties go to the smaller count
    count, hits = max(freq.items(), key=lambda kv: (kv[1], -kv[0]))
    return count if hits >= math.ceil(len(ok) / 2) else None


def is_unanimous(results: Iterable[ModelResult]) -> bool:
    counts = {r.transaction_count for r in results}
    return len(counts) == 1 and next(iter(counts)) > 0


def mark_outliers(results: Iterable[ModelResult], consensus: Optional[int]) -> None:
    if not consensus:
        return
    for r in results:
        if r.error:
            continue
        if abs(r.transaction_count - consensus) > OUTLIER_TOLERANCE:
            r.error = f"Outlier: {r.transaction_count} txns (consensus: {consensus})"


def rank_results(results: Iterable[ModelResult]) -> List[ModelResult]:
    return sorted(results, key=lambda r: (r.error is not None, r.processing_time))


def summarize(ranked: List[ModelResult], total_models: int, consensus: Optional[int], unanimous: bool) -> ArenaSummary:
    successful = [r for r in ranked if not r.error]
    fastest = successful[0] if successful else None
    slowest = successful[-1] if successful else None
    return ArenaSummary(
        total_models=total_models,
        successful_models=len(successful),
        fastest_model=fastest.model if fastest else "",
        fastest_time=fastest.processing_time if fastest else 0,
        slowest_model=slowest.model if slowest else "",
        slowest_time=slowest.processing_time if slowest else 0,
        has_consensus=consensus is not None,
        consensus_count=consensus,
        unanimous=unanimous,
    )


async def run_arena(
    provider: OpenRouterProvider,
    models: Iterable[str],
    statement: StatementInput,
    *,
    today: date,
    max_concurrency: int = 8,
) -> ArenaResponse:
    unique = list(dict.fromkeys(m.strip() for m in models if m and m.strip()))
    logger.info(f"Testing {len(unique)} models in parallel (max {max_concurrency} at a time)...")

    sem = asyncio.Semaphore(max(1, max_concurrency))

    async def bounded(model: str) -> ModelResult:
        async with sem:
            return await process_with_model(provider, model, statement, today)

    results = list(await asyncio.gather(*(bounded(m) for m in unique)))

    unanimous = is_unanimous(results)
    consensus = find_consensus(results)
    mark_outliers(results, consensus)
    ranked = rank_results(results)

    return ArenaResponse(
        results=ranked,
        summary=summarize(ranked, total_models=len(unique), consensus=consensus, unanimous=unanimous),
    )
