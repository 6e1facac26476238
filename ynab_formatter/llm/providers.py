"""
Purpose:
- Interchangeable multimodal LLM providers behind one `complete()` call.
- Google AI Studio: raw REST over httpx (its own request/response shape).
- OpenRouter / Z.AI / LM Studio: OpenAI-compatible chat completions via the openai SDK.

Notes:
- Every provider shares the caller's httpx.AsyncClient so tests can inject a MockTransport.
- Upstream failures are raised as ProviderError subclasses; routes decide the HTTP status.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI
from loguru import logger

from ..core.settings import Settings, PROVIDER_LABELS
from ..services.statement_input import StatementInput
from .errors import (
    EmptyResponseError,
    ProviderAuthError,
    ProviderError,
    ProviderNotConfiguredError,
    ProviderUnavailableError,
)
from .prompts import (
    SYSTEM_PROMPT,
    build_csv_prompt,
    build_csv_to_json_prompt,
    build_extraction_prompt,
    with_statement_text,
)

GOOGLE_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
Z_AI_BASE_URL = "https://api.z.ai/api/paas/v4"


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            cost=self.cost + other.cost,
        )


@dataclass
class ProviderReply:
    text: str
    model: str
    usage: Usage = field(default_factory=Usage)


@dataclass
class ExtractionRequest:
    statement: StatementInput
    today: date
    custom_prompt: Optional[str] = None
    model: Optional[str] = None     # overrides the provider's configured default


def upstream_error_message(response: httpx.Response) -> str:
    """Prefer the vendor's own `error.message`; fall back to the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return f"Request failed with status code {response.status_code}"


def openai_error_message(e: openai.APIError) -> str:
    body = getattr(e, "body", None)
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return e.message


class VisionProvider:
    name: str = ""

    def __init__(self, http_client: httpx.AsyncClient, cfg: Settings):
        self.http = http_client
        self.cfg = cfg

    @property
    def label(self) -> str:
        return PROVIDER_LABELS[self.name]

    @property
    def api_key(self) -> Optional[str]:
        return self.cfg.api_key_for(self.name)

    def ensure_configured(self) -> None:
        if not self.api_key:
            logger.error(f"{self.label} API key not configured")
            raise ProviderNotConfiguredError(self.label)

    def model_for(self, requested: Optional[str]) -> str:
        return (requested or "").strip() or self.cfg.default_model_for(self.name)

    async def complete(self, req: ExtractionRequest) -> ProviderReply:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Google AI Studio (generateContent REST)
# ---------------------------------------------------------------------------

class GoogleAIStudioProvider(VisionProvider):
    name = "googleaistudio"

    async def complete(self, req: ExtractionRequest) -> ProviderReply:
        self.ensure_configured()
        model = self.model_for(req.model)
        source = "image" if req.statement.is_image else "text"
        prompt = with_statement_text(
            build_extraction_prompt(req.today, req.custom_prompt, source=source), req.statement.text
        )

        parts: List[Dict[str, Any]] = [{"text": prompt}]
        if req.statement.is_image:
            parts.append({"inlineData": {"mimeType": req.statement.mime_type, "data": req.statement.base64_data}})

        body = {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "temperature": self.cfg.llm_temperature,
                "maxOutputTokens": self.cfg.llm_max_tokens,
            },
        }

        logger.info(f"Calling {self.label} API with model: {model}")
        try:
            r = await self.http.post(
                GOOGLE_ENDPOINT.format(model=model),
                params={"key": self.api_key},
                json=body,
                timeout=self.cfg.llm_timeout_seconds,
            )
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPStatusError as e:
            msg = upstream_error_message(e.response)
            logger.error(f"{self.label} API error: {e.response.status_code} {msg}")
            if e.response.status_code in (401, 403):
                raise ProviderAuthError(self.label, msg) from e
            raise ProviderError(self.label, msg) from e
        except httpx.RequestError as e:
            logger.error(f"{self.label} connection error: {e!r}")
            raise ProviderError(self.label, str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise ProviderError(self.label, "Response body was not JSON") from e

        return ProviderReply(text=self._reply_text(data), model=model, usage=self._usage(data))

    @staticmethod
    def _reply_text(data: Any) -> str:
        candidates = data.get("candidates") or [] if isinstance(data, dict) else []
        if not candidates or not isinstance(candidates[0], dict):
            raise EmptyResponseError()
        parts = (candidates[0].get("content") or {}).get("parts") or []
        # thinking models interleave "thought" parts; only the answer text counts
        texts = [
            p["text"] for p in parts
            if isinstance(p, dict) and isinstance(p.get("text"), str) and not p.get("thought")
        ]
        if not texts:
            raise EmptyResponseError()
        return "".join(texts)

    @staticmethod
    def _usage(data: Dict[str, Any]) -> Usage:
        meta = data.get("usageMetadata") or {}
        return Usage(
            prompt_tokens=int(meta.get("promptTokenCount") or 0),
            completion_tokens=int(meta.get("candidatesTokenCount") or 0),
        )


# ---------------------------------------------------------------------------
# OpenAI-compatible chat completions
# ---------------------------------------------------------------------------

def vision_messages(prompt: str, statement: StatementInput, system: Optional[str] = SYSTEM_PROMPT) -> List[Dict[str, Any]]:
    user_content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
    if statement.is_image:
        user_content.append({"type": "image_url", "image_url": {"url": statement.data_url}})
    messages: List[Dict[str, Any]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": user_content})
    return messages


class OpenAICompatibleProvider(VisionProvider):
    base_url: str = ""

    def _headers(self) -> Optional[Dict[str, str]]:
        return None

    def _client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self.api_key or "not-needed",
            base_url=self.base_url,
            http_client=self.http,
            default_headers=self._headers(),
            max_retries=0,
            timeout=self.cfg.llm_timeout_seconds,
        )

    def _connection_error(self, e: openai.APIConnectionError) -> ProviderError:
        return ProviderError(self.label, openai_error_message(e))

    async def _chat(
        self,
        client: AsyncOpenAI,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: float,
    ) -> ProviderReply:
        try:
            resp = await client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=self.cfg.llm_max_tokens,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            logger.error(f"{self.label} API error: {openai_error_message(e)}")
            raise ProviderAuthError(self.label, openai_error_message(e)) from e
        except openai.APITimeoutError as e:
            logger.error(f"{self.label} API timeout after {self.cfg.llm_timeout_seconds}s")
            raise ProviderError(self.label, "Request timed out") from e
        except openai.APIConnectionError as e:
            logger.error(f"{self.label} connection error: {e!r}")
            raise self._connection_error(e) from e
        except openai.APIError as e:
            logger.error(f"{self.label} API error: {openai_error_message(e)}")
            raise ProviderError(self.label, openai_error_message(e)) from e

        choices = resp.choices or []
        content = choices[0].message.content if choices and choices[0].message else None
        if not isinstance(content, str):
            logger.error(f"Missing content in {self.label} response")
            raise EmptyResponseError()
        return ProviderReply(text=content, model=model, usage=self._usage(resp))

    @staticmethod
    def _usage(resp: Any) -> Usage:
        usage = getattr(resp, "usage", None)
        if usage is None:
            return Usage()
        # OpenRouter reports spend as an extra usage field
        cost = getattr(usage, "total_cost", None) or getattr(usage, "cost", None) or 0.0
        return Usage(
            prompt_tokens=int(getattr(usage, "prompt_tokens", 0) or 0),
            completion_tokens=int(getattr(usage, "completion_tokens", 0) or 0),
            cost=float(cost),
        )

    async def complete(self, req: ExtractionRequest) -> ProviderReply:
        self.ensure_configured()
        model = self.model_for(req.model)
        source = "image" if req.statement.is_image else "text"
        prompt = with_statement_text(
            build_extraction_prompt(req.today, req.custom_prompt, source=source), req.statement.text
        )
        logger.info(f"Calling {self.label} API with model: {model}")
        return await self._chat(
            self._client(), model, vision_messages(prompt, req.statement), self.cfg.llm_temperature
        )


class OpenRouterProvider(OpenAICompatibleProvider):
    name = "openrouter"
    base_url = OPENROUTER_BASE_URL

    def __init__(self, http_client: httpx.AsyncClient, cfg: Settings, title: Optional[str] = None):
        super().__init__(http_client, cfg)
        self.title = title or cfg.openrouter_title

    def _headers(self) -> Dict[str, str]:
        return {"HTTP-Referer": self.cfg.openrouter_referer, "X-Title": self.title}


class ZAIProvider(OpenAICompatibleProvider):
    name = "z.ai"
    base_url = Z_AI_BASE_URL


class LMStudioProvider(OpenAICompatibleProvider):
    """
    Local OpenAI-compatible server. Small local VLMs are unreliable at JSON,
    so this runs two calls: statement -> CSV, then CSV -> JSON (text only).
    """

    name = "lm-studio"

    @property
    def base_url(self) -> str:
        return self.cfg.lm_studio_url.rstrip("/")

    def ensure_configured(self) -> None:
        return None

    def _connection_error(self, e: openai.APIConnectionError) -> ProviderError:
        return ProviderUnavailableError(
            self.label,
            f"Cannot connect to LM Studio at {self.cfg.lm_studio_url}. Please ensure LM Studio is running.",
        )

    async def complete(self, req: ExtractionRequest) -> ProviderReply:
        model = self.model_for(req.model)
        client = self._client()
        temperature = self.cfg.lm_studio_temperature
        source = "image" if req.statement.is_image else "text"

        logger.info(f"Calling {self.label}: {model}")
        csv_prompt = with_statement_text(
            build_csv_prompt(req.today, req.custom_prompt, source=source), req.statement.text
        )
        step1 = await self._chat(client, model, vision_messages(csv_prompt, req.statement, system=None), temperature)
        logger.debug(f"Step 1 - CSV extracted: {step1.text[:500]}")

        step2 = await self._chat(
            client,
            model,
            [{"role": "user", "content": build_csv_to_json_prompt(step1.text)}],
            temperature,
        )
        logger.debug("Step 2 - Converted to JSON")
        return ProviderReply(text=step2.text, model=model, usage=step1.usage + step2.usage)


PROVIDERS: Dict[str, type[VisionProvider]] = {
    GoogleAIStudioProvider.name: GoogleAIStudioProvider,
    OpenRouterProvider.name: OpenRouterProvider,
    ZAIProvider.name: ZAIProvider,
    LMStudioProvider.name: LMStudioProvider,
}


def get_provider(name: str, http_client: httpx.AsyncClient, cfg: Settings) -> VisionProvider:
    try:
        cls = PROVIDERS[name]
    except KeyError:
        raise ValueError(f"Unknown provider: {name}") from None
    return cls(http_client, cfg)
