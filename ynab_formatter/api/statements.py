"""
Purpose:
- /api/process-statement: upload -> provider -> transactions JSON for the review table.
- /api/providers: what the provider selector on the upload page can offer.
"""

from datetime import date
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, UploadFile
from loguru import logger

from ..core.settings import PROVIDER_LABELS, default_provider, resolve_provider, settings
from ..llm.errors import ProviderError, ResponseError
from ..llm.providers import get_provider
from ..schemas import ProcessResponse, ProviderInfo, TokenUsage
from ..services.extraction import extract_statement
from ..services.statement_input import UnsupportedUpload, prepare_statement
from .common import error_response, get_http_client

router = APIRouter(prefix="/api", tags=["statements"])


@router.post("/process-statement")
async def process_statement(
    file: Optional[UploadFile] = File(default=None),
    model: Optional[str] = Form(default=None),
    provider: Optional[str] = Form(default=None),
    custom_prompt: Optional[str] = Form(default=None, alias="customPrompt"),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    if file is None:
        return error_response(400, "No file provided")

    try:
        name = resolve_provider(settings, provider)
    except ValueError as e:
        return error_response(400, str(e))

    try:
        raw = await file.read()
        if len(raw) > settings.max_upload_mb * 1024 * 1024:
            return error_response(413, f"File too large (max {settings.max_upload_mb:g} MB)")
        statement = prepare_statement(raw, file.content_type, file.filename)
    except UnsupportedUpload as e:
        return error_response(400, str(e))

    client = get_provider(name, http, settings)
    try:
        client.ensure_configured()
        result = await extract_statement(
            client,
            statement,
            today=date.today(),
            custom_prompt=custom_prompt,
            model=model,
        )
    except ProviderError as e:
        return error_response(e.status_code, e.public_message)
    except ResponseError as e:
        logger.error(f"Error parsing AI response: {e}")
        return error_response(e.status_code, e.public_message)
    except Exception:
        logger.exception("Error processing statement")
        return error_response(500, "Failed to process statement")

    return ProcessResponse(
        transactions=result.transactions,
        provider=result.provider,
        model=result.model,
        usage=TokenUsage(prompt=result.usage.prompt_tokens, completion=result.usage.completion_tokens),
        cost=result.usage.cost,
        warning=result.warning,
    ).model_dump(exclude_none=True)


@router.get("/providers")
def list_providers():
    providers = [
        ProviderInfo(
            name=name,
            label=label,
            configured=name == "lm-studio" or bool(settings.api_key_for(name)),
            default_model=settings.default_model_for(name),
        ).model_dump()
        for name, label in PROVIDER_LABELS.items()
    ]
    try:
        selected = resolve_provider(settings)
    except ValueError:
        selected = default_provider(settings)
    return {"ok": True, "default": selected, "providers": providers}
