# Common language: Environment/ops probe that surfaces version pins and provider/auth configuration.
# Use this before/after upgrades to confirm no silent drift. Never echoes secrets, only presence.

from fastapi import APIRouter
from ..core.settings import settings, default_provider, resolve_provider
from ..services.auth import auth_enabled
import sys, importlib

router = APIRouter(tags=["health"])


def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
        return getattr(m, "__version__", "unknown")
    except ImportError:
        return "not-installed"


@router.get("/healthz")
def healthz():
    try:
        provider = resolve_provider(settings)
    except ValueError:
        provider = default_provider(settings)
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic_settings": _ver("pydantic_settings"),
            "httpx": _ver("httpx"),
            "openai": _ver("openai"),
            "PIL": _ver("PIL"),
            "pypdf": _ver("pypdf"),
            "bcrypt": _ver("bcrypt"),
        },
        "config": {
            "app_env": settings.app_env,
            "default_provider": provider,
            "lm_studio_url": settings.lm_studio_url,
            "arena_max_concurrency": settings.arena_max_concurrency,
        },
        "env_keys_present": {
            "GOOGLEAISTUDIO_API_KEY": bool(settings.googleaistudio_api_key),
            "OPENROUTER_API_KEY": bool(settings.openrouter_api_key),
            "Z_AI_API_KEY": bool(settings.z_ai_api_key),
        },
        "auth_enabled": auth_enabled(),
    }
