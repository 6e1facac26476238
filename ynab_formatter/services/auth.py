"""
Purpose:
- Single-user login check against AUTH_USERNAME / AUTH_PASSWORD_HASH (bcrypt).
- Outside production, credentials are re-read from .env/.env.local on each attempt,
  so regenerating them with `ynab-formatter credentials` needs no restart.
"""

from __future__ import annotations
from typing import Optional, Tuple

import bcrypt
from loguru import logger

from ..core.settings import PLACEHOLDER_SESSION_SECRET, Settings, settings

BCRYPT_ROUNDS = 10


def auth_enabled() -> bool:
    """Login is only enforced once both credentials are configured."""
    return bool(settings.auth_username and settings.auth_password_hash)


def current_credentials() -> Optional[Tuple[str, str]]:
    username, pw_hash = settings.auth_username, settings.auth_password_hash
    if not settings.is_production:
        fresh = Settings()
        username = fresh.auth_username or username
        pw_hash = fresh.auth_password_hash or pw_hash
    if not username or not pw_hash:
        return None
    return username, pw_hash


def verify_credentials(username: str, password: str) -> bool:
    creds = current_credentials()
    if creds is None:
        logger.warning("AUTH_USERNAME or AUTH_PASSWORD_HASH not set in environment variables")
        return False

    expected, pw_hash = creds
    given = username.strip().lower()
    if given != expected.strip().lower():
        if not settings.is_production:
            logger.info(f"Username mismatch: {given!r}")
        return False

    try:
        matches = bcrypt.checkpw(password.encode("utf-8"), pw_hash.strip().encode("utf-8"))
    except ValueError as e:
        # malformed hash, or a password bcrypt refuses (>72 bytes)
        logger.error(f"Password check failed: {e}")
        return False

    if not matches and not settings.is_production:
        logger.info(f"Password mismatch attempt for user {given!r}")
    return matches


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("ascii")


def warn_on_weak_session_secret(cfg: Settings) -> None:
    if cfg.session_secret == PLACEHOLDER_SESSION_SECRET and cfg.is_production and auth_enabled():
        logger.warning("SESSION_SECRET is the built-in placeholder; session cookies can be forged")
