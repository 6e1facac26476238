"""
Purpose:
- Shared route plumbing: the outbound HTTP client dependency and the JSON error shape.
"""

from typing import AsyncIterator

import httpx
from fastapi.responses import JSONResponse

from ..core.settings import settings


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One client per request; every provider call in that request reuses it."""
    async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds) as client:
        yield client


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})
