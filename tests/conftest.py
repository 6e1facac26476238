"""Pytest configuration and fixtures."""

from __future__ import annotations

from io import BytesIO
from typing import Callable

import bcrypt
import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from ynab_formatter.api.common import get_http_client
from ynab_formatter.core.settings import settings
from ynab_formatter.main import app

ENV_KEYS = [
    "GOOGLEAISTUDIO_API_KEY",
    "OPENROUTER_API_KEY",
    "Z_AI_API_KEY",
    "LLM_PROVIDER",
    "AUTH_USERNAME",
    "AUTH_PASSWORD_HASH",
    "APP_ENV",
]

SETTINGS_RESET = {
    "googleaistudio_api_key": None,
    "openrouter_api_key": None,
    "z_ai_api_key": None,
    "llm_provider": None,
    "auth_username": None,
    "auth_password_hash": None,
    "app_env": "development",
}


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Every test starts with no provider keys, no login and no stray .env files."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    for field, value in SETTINGS_RESET.items():
        monkeypatch.setattr(settings, field, value)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    def build(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return build


@pytest.fixture
def llm_handler(make_http):
    """Route every upstream LLM call made through the app to a MockTransport handler."""
    def install(handler):
        app.dependency_overrides[get_http_client] = lambda: make_http(handler)
    yield install
    app.dependency_overrides.pop(get_http_client, None)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (40, 20), color=(255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt hash of 'test123' at low cost to keep tests fast."""
    return bcrypt.hashpw(b"test123", bcrypt.gensalt(rounds=4)).decode("ascii")


def chat_completion(content, model: str = "test-model", usage: dict | None = None) -> dict:
    body = {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }
    if usage is not None:
        body["usage"] = usage
    return body


def gemini_reply(text: str) -> dict:
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}],
        "usageMetadata": {"promptTokenCount": 1200, "candidatesTokenCount": 85},
    }


def text_pdf(text: str) -> bytes:
    """Smallest single-page PDF with one line of Helvetica text and a valid xref table."""
    stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for i, obj in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{i} 0 obj\n".encode() + obj + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)
