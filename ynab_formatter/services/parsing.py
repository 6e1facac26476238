"""
Purpose:
- Turn a model's free-text reply into a raw list of transaction dicts.
- Models wrap JSON in markdown fences or chatter around it; we tolerate both.
"""

from __future__ import annotations
from typing import Any, List
import json
import re

from ..llm.errors import ResponseParseError, ResponseShapeError

_FENCE_JSON = re.compile(r"```json\n?")
_FENCE = re.compile(r"```\n?")
_ARRAY = re.compile(r"\[[\s\S]*\]")


def strip_fences(content: str) -> str:
    return _FENCE.sub("", _FENCE_JSON.sub("", content))


def parse_transactions(content: str) -> List[Any]:
    """
    Widest [...] span wins; otherwise the whole reply must be JSON.
    Accepts a bare array or {"transactions": [...]}.
    """
    cleaned = strip_fences(content)
    match = _ARRAY.search(cleaned)
    try:
        parsed = json.loads(match.group(0) if match else cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(str(e)) from e

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("transactions"), list):
        return parsed["transactions"]
    raise ResponseShapeError(f"unexpected JSON type: {type(parsed).__name__}")
