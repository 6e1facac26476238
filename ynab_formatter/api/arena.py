"""
Purpose:
- /api/test-models: model arena. Fan one image out to many OpenRouter models and compare.
- GET lists the catalog the arena page offers; POST runs the comparison.
"""

from datetime import date

import httpx
from fastapi import APIRouter, Depends
from loguru import logger

from ..core.settings import settings
from ..llm.catalog import AVAILABLE_MODELS, categories
from ..llm.providers import OpenRouterProvider
from ..schemas import ArenaRequest
from ..services.arena import run_arena
from ..services.statement_input import UnsupportedUpload, statement_from_data_url
from .common import error_response, get_http_client

router = APIRouter(prefix="/api/test-models", tags=["arena"])


@router.get("")
def list_models():
    return {
        "ok": True,
        "categories": categories(),
        "models": [m.model_dump() for m in AVAILABLE_MODELS],
    }


@router.post("")
async def test_models(payload: ArenaRequest, http: httpx.AsyncClient = Depends(get_http_client)):
    if not settings.openrouter_api_key:
        return error_response(500, "OpenRouter API key not configured")
    if not [m for m in (payload.models or []) if m and m.strip()]:
        return error_response(400, "No models specified")
    if not payload.image_data:
        return error_response(400, "No image data provided")

    try:
        statement = statement_from_data_url(payload.image_data)
    except UnsupportedUpload as e:
        return error_response(400, str(e))

    provider = OpenRouterProvider(http, settings, title=settings.arena_title)
    try:
        report = await run_arena(
            provider,
            payload.models,
            statement,
            today=date.today(),
            max_concurrency=settings.arena_max_concurrency,
        )
    except Exception:
        logger.exception("Error in model testing")
        return error_response(500, "Failed to test models")

    return report.model_dump(by_alias=True)
