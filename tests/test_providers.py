"""Tests for provider request building and upstream error mapping."""

from __future__ import annotations

import asyncio
import json
from datetime import date

import httpx
import pytest

from conftest import chat_completion, gemini_reply
from ynab_formatter.core.settings import Settings
from ynab_formatter.llm.errors import (
    EmptyResponseError,
    ProviderAuthError,
    ProviderError,
    ProviderNotConfiguredError,
    ProviderUnavailableError,
)
from ynab_formatter.llm.providers import (
    ExtractionRequest,
    GoogleAIStudioProvider,
    LMStudioProvider,
    OpenRouterProvider,
    ZAIProvider,
    get_provider,
)
from ynab_formatter.services.statement_input import StatementInput

TODAY = date(2025, 9, 4)
IMAGE = StatementInput(kind="image", filename="card.png", mime_type="image/png", base64_data="iVBORw0KGgo=")
PDF_TEXT = StatementInput(kind="text", mime_type="application/pdf", text="--- Page 1 ---\nCAFE 4.50")


def _cfg(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _run(provider, statement=IMAGE, **kwargs):
    return asyncio.run(provider.complete(ExtractionRequest(statement=statement, today=TODAY, **kwargs)))


class TestGoogleAIStudio:
    def test_request_and_reply(self, make_http) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_reply('[{"payee": "Cafe"}]'))

        provider = GoogleAIStudioProvider(make_http(handler), _cfg(googleaistudio_api_key="g-key"))
        reply = _run(provider)

        assert seen["url"].path == "/v1beta/models/gemini-2.5-flash-lite:generateContent"
        assert seen["url"].params["key"] == "g-key"
        parts = seen["body"]["contents"][0]["parts"]
        assert "Today's date: 2025-09-04" in parts[0]["text"]
        assert parts[1] == {"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}
        assert seen["body"]["generationConfig"] == {"temperature": 0.1, "maxOutputTokens": 4000}

        assert reply.text == '[{"payee": "Cafe"}]'
        assert reply.model == "gemini-2.5-flash-lite"
        assert (reply.usage.prompt_tokens, reply.usage.completion_tokens) == (1200, 85)

    def test_requested_model_wins(self, make_http) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert "gemini-2.5-pro" in request.url.path
            return httpx.Response(200, json=gemini_reply("[]"))

        provider = GoogleAIStudioProvider(make_http(handler), _cfg(googleaistudio_api_key="g-key"))
        assert _run(provider, model="gemini-2.5-pro").model == "gemini-2.5-pro"

    def test_pdf_text_has_no_image_part(self, make_http) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["parts"] = json.loads(request.content)["contents"][0]["parts"]
            return httpx.Response(200, json=gemini_reply("[]"))

        provider = GoogleAIStudioProvider(make_http(handler), _cfg(googleaistudio_api_key="g-key"))
        _run(provider, statement=PDF_TEXT)
        assert len(seen["parts"]) == 1
        assert seen["parts"][0]["text"].endswith("Statement text:\n--- Page 1 ---\nCAFE 4.50")

    def test_thought_parts_skipped(self, make_http) -> None:
        body = {"candidates": [{"content": {"parts": [
            {"text": "thinking...", "thought": True},
            {"text": "[]"},
        ]}}]}
        provider = GoogleAIStudioProvider(
            make_http(lambda r: httpx.Response(200, json=body)), _cfg(googleaistudio_api_key="g-key")
        )
        assert _run(provider).text == "[]"

    def test_no_candidates(self, make_http) -> None:
        provider = GoogleAIStudioProvider(
            make_http(lambda r: httpx.Response(200, json={"candidates": []})), _cfg(googleaistudio_api_key="g-key")
        )
        with pytest.raises(EmptyResponseError):
            _run(provider)

    def test_unauthorized(self, make_http) -> None:
        provider = GoogleAIStudioProvider(
            make_http(lambda r: httpx.Response(401, json={"error": {"message": "API key not valid"}})),
            _cfg(googleaistudio_api_key="bad"),
        )
        with pytest.raises(ProviderAuthError) as exc:
            _run(provider)
        assert exc.value.status_code == 401
        assert exc.value.public_message == "Invalid API key for Google AI Studio"

    def test_forbidden_is_auth_error(self, make_http) -> None:
        provider = GoogleAIStudioProvider(
            make_http(lambda r: httpx.Response(403, json={"error": {"message": "PERMISSION_DENIED"}})),
            _cfg(googleaistudio_api_key="restricted"),
        )
        with pytest.raises(ProviderAuthError) as exc:
            _run(provider)
        assert exc.value.status_code == 401
        assert exc.value.public_message == "Invalid API key for Google AI Studio"

    def test_upstream_failure_message(self, make_http) -> None:
        provider = GoogleAIStudioProvider(
            make_http(lambda r: httpx.Response(429, json={"error": {"message": "Quota exceeded"}})),
            _cfg(googleaistudio_api_key="g-key"),
        )
        with pytest.raises(ProviderError) as exc:
            _run(provider)
        assert exc.value.public_message == "Google AI Studio API error: Quota exceeded"

    def test_missing_key(self, make_http) -> None:
        provider = GoogleAIStudioProvider(make_http(lambda r: httpx.Response(500)), _cfg())
        with pytest.raises(ProviderNotConfiguredError) as exc:
            _run(provider)
        assert exc.value.public_message == "Google AI Studio API key not configured"


class TestOpenAICompatible:
    def test_openrouter_headers_and_image(self, make_http) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            seen["body"] = json.loads(request.content)
            usage = {"prompt_tokens": 900, "completion_tokens": 60, "total_tokens": 960, "cost": 0.0012}
            return httpx.Response(200, json=chat_completion('[{"payee": "Cafe"}]', usage=usage))

        provider = OpenRouterProvider(make_http(handler), _cfg(openrouter_api_key="or-key"))
        reply = _run(provider)

        request = seen["request"]
        assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer or-key"
        assert request.headers["http-referer"] == "http://localhost:3000"
        assert request.headers["x-title"] == "YNAB Statement Formatter"

        body = seen["body"]
        assert body["model"] == "google/gemini-flash-1.5-8b"
        assert body["temperature"] == 0.1
        assert body["max_tokens"] == 4000
        assert body["messages"][0]["role"] == "system"
        user = body["messages"][1]["content"]
        assert user[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="}}

        assert reply.text == '[{"payee": "Cafe"}]'
        assert reply.usage.prompt_tokens == 900
        assert reply.usage.cost == pytest.approx(0.0012)

    def test_arena_title(self, make_http) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["title"] = request.headers["x-title"]
            return httpx.Response(200, json=chat_completion("[]"))

        provider = OpenRouterProvider(make_http(handler), _cfg(openrouter_api_key="or-key"), title="YNAB Model Tester")
        _run(provider)
        assert seen["title"] == "YNAB Model Tester"

    def test_zai_endpoint(self, make_http) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["model"] = json.loads(request.content)["model"]
            return httpx.Response(200, json=chat_completion("[]"))

        _run(ZAIProvider(make_http(handler), _cfg(z_ai_api_key="z-key")))
        assert seen["url"] == "https://api.z.ai/api/paas/v4/chat/completions"
        assert seen["model"] == "glm-4.5v"

    def test_unauthorized(self, make_http) -> None:
        provider = OpenRouterProvider(
            make_http(lambda r: httpx.Response(401, json={"error": {"message": "No auth credentials found"}})),
            _cfg(openrouter_api_key="bad"),
        )
        with pytest.raises(ProviderAuthError) as exc:
            _run(provider)
        assert exc.value.public_message == "Invalid API key for OpenRouter"

    def test_forbidden_is_auth_error(self, make_http) -> None:
        provider = ZAIProvider(
            make_http(lambda r: httpx.Response(403, json={"error": {"message": "Key lacks vision access"}})),
            _cfg(z_ai_api_key="restricted"),
        )
        with pytest.raises(ProviderAuthError) as exc:
            _run(provider)
        assert exc.value.public_message == "Invalid API key for Z.AI"

    def test_upstream_failure(self, make_http) -> None:
        provider = OpenRouterProvider(
            make_http(lambda r: httpx.Response(400, json={"error": {"message": "model not found"}})),
            _cfg(openrouter_api_key="or-key"),
        )
        with pytest.raises(ProviderError) as exc:
            _run(provider)
        assert not isinstance(exc.value, ProviderAuthError)
        assert exc.value.status_code == 500
        assert exc.value.public_message == "OpenRouter API error: model not found"

    def test_null_content(self, make_http) -> None:
        provider = OpenRouterProvider(
            make_http(lambda r: httpx.Response(200, json=chat_completion(None))),
            _cfg(openrouter_api_key="or-key"),
        )
        with pytest.raises(EmptyResponseError):
            _run(provider)


class TestLMStudio:
    def test_two_step_csv_then_json(self, make_http) -> None:
        bodies = []
        replies = iter([
            chat_completion("Date,Payee,Memo,Outflow,Inflow\n2025-08-01,Cafe,,$4.50,",
                            usage={"prompt_tokens": 800, "completion_tokens": 40, "total_tokens": 840}),
            chat_completion('[{"date": "2025-08-01", "payee": "Cafe", "outflow": "$4.50"}]',
                            usage={"prompt_tokens": 100, "completion_tokens": 30, "total_tokens": 130}),
        ])

        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "http://localhost:1234/v1/chat/completions"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=next(replies))

        reply = _run(LMStudioProvider(make_http(handler), _cfg()))

        first, second = bodies
        assert first["temperature"] == 0.0
        assert first["messages"][0]["role"] == "user"
        assert "Create CSV with headers" in first["messages"][0]["content"][0]["text"]
        assert first["messages"][0]["content"][1]["type"] == "image_url"
        assert "2025-08-01,Cafe,,$4.50," in second["messages"][0]["content"]

        assert reply.text.startswith('[{"date"')
        assert reply.model == "qwen2.5-vl-7b-instruct"
        assert (reply.usage.prompt_tokens, reply.usage.completion_tokens) == (900, 70)

    def test_server_not_running(self, make_http) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        provider = LMStudioProvider(make_http(handler), _cfg())
        with pytest.raises(ProviderUnavailableError) as exc:
            _run(provider)
        assert exc.value.status_code == 503
        assert exc.value.public_message == (
            "Cannot connect to LM Studio at http://localhost:1234/v1. Please ensure LM Studio is running."
        )


class TestRegistry:
    def test_known_names(self, make_http) -> None:
        http = make_http(lambda r: httpx.Response(200))
        cfg = _cfg()
        assert isinstance(get_provider("z.ai", http, cfg), ZAIProvider)
        assert get_provider("lm-studio", http, cfg).label == "LM Studio"

    def test_unknown_name(self, make_http) -> None:
        with pytest.raises(ValueError, match="Unknown provider: claude"):
            get_provider("claude", make_http(lambda r: httpx.Response(200)), _cfg())
