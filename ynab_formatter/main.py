"""
Purpose:
- FastAPI application factory and router mounts.
- CORS for the browser pages, signed-cookie sessions, and the login guard.
- Uvicorn will serve this on 0.0.0.0:8000 by default (see `ynab-formatter serve`).
"""

from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger
from starlette.middleware.sessions import SessionMiddleware

from .core.settings import settings
from .core.logging_config import configure_logging
from .services.auth import auth_enabled, warn_on_weak_session_secret
from .api.health import router as health_router
from .api.auth import router as auth_router, SESSION_KEY
from .api.statements import router as statements_router
from .api.arena import router as arena_router
from .api.export import router as export_router
from .api.common import error_response

PUBLIC_PREFIXES = ("/api/auth", "/static", "/favicon", "/healthz")


def should_bypass_auth(path: str) -> bool:
    return path == "/login" or path.startswith(PUBLIC_PREFIXES)


async def require_login(request: Request, call_next):
    path = request.url.path
    if should_bypass_auth(path) or not auth_enabled():
        return await call_next(request)
    if request.session.get(SESSION_KEY):
        return await call_next(request)
    if path.startswith("/api/"):
        return JSONResponse(status_code=401, content={"ok": False, "error": "Authentication required"})
    return RedirectResponse(url=f"/login?{urlencode({'from': path})}", status_code=307)


async def invalid_request(request: Request, exc: RequestValidationError):
    # malformed JSON and wrong field types
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return error_response(400, "Invalid request body")


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    warn_on_weak_session_secret(settings)

    app = FastAPI(title="YNAB Statement Formatter", version="0.1.0")
    app.add_exception_handler(RequestValidationError, invalid_request)
    # Middleware order: last added runs first, so the guard sees a loaded session
    app.middleware("http")(require_login)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(statements_router)
    app.include_router(arena_router)
    app.include_router(export_router)
    return app


app = create_app()
