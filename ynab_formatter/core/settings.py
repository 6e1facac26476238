"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env / .env.local files.
- Provider keys, default models and auth credentials are tunable without code changes.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SESSION_SECRET = "complex-password-at-least-32-characters-long"

# provider name -> human label used in logs and error messages
PROVIDER_LABELS: dict[str, str] = {
    "googleaistudio": "Google AI Studio",
    "openrouter": "OpenRouter",
    "z.ai": "Z.AI",
    "lm-studio": "LM Studio",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API host/port
    host: str = Field(default="0.0.0.0", description="Bind address for FastAPI/Uvicorn")
    port: int = Field(default=8000, description="Port for FastAPI/Uvicorn")

    # CORS
    cors_allow_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed origins for browser apps"
    )

    app_env: str = Field(default="development", description="'production' tightens cookies and auth reloads")
    log_level: str = Field(default="INFO")

    # ---- Provider selection ----
    # Explicit override; otherwise the first provider with a key wins
    llm_provider: Optional[str] = None

    googleaistudio_api_key: Optional[str] = None
    googleaistudio_model: str = Field(default="gemini-2.5-flash-lite")

    openrouter_api_key: Optional[str] = None
    openrouter_model: str = Field(default="google/gemini-flash-1.5-8b")
    openrouter_referer: str = Field(default="http://localhost:3000")
    openrouter_title: str = Field(default="YNAB Statement Formatter")
    arena_title: str = Field(default="YNAB Model Tester")

    z_ai_api_key: Optional[str] = None
    z_ai_model: str = Field(default="glm-4.5v")

    lm_studio_url: str = Field(default="http://localhost:1234/v1")
    lm_studio_model: str = Field(default="qwen2.5-vl-7b-instruct")

    # ---- Generation knobs ----
    llm_temperature: float = Field(default=0.1)
    lm_studio_temperature: float = Field(default=0.0)
    llm_max_tokens: int = Field(default=4000)
    llm_timeout_seconds: float = Field(default=120.0)

    # ---- Model arena ----
    arena_max_concurrency: int = Field(default=8, ge=1, description="Parallel OpenRouter calls per arena run")

    # ---- Uploads ----
    max_upload_mb: float = Field(default=20.0)

    # ---- Auth (disabled unless both are set) ----
    auth_username: Optional[str] = None
    auth_password_hash: Optional[str] = None
    session_secret: str = Field(default=PLACEHOLDER_SESSION_SECRET)
    session_cookie: str = Field(default="ynab-formatter-session")
    session_max_age: int = Field(default=60 * 60 * 24 * 7)

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def api_key_for(self, provider: str) -> Optional[str]:
        return {
            "googleaistudio": self.googleaistudio_api_key,
            "openrouter": self.openrouter_api_key,
            "z.ai": self.z_ai_api_key,
        }.get(provider)

    def default_model_for(self, provider: str) -> str:
        return {
            "googleaistudio": self.googleaistudio_model,
            "openrouter": self.openrouter_model,
            "z.ai": self.z_ai_model,
            "lm-studio": self.lm_studio_model,
        }[provider]


def default_provider(cfg: Settings) -> str:
    """First provider with a configured key; the local server needs none."""
    if cfg.googleaistudio_api_key:
        return "googleaistudio"
    if cfg.openrouter_api_key:
        return "openrouter"
    if cfg.z_ai_api_key:
        return "z.ai"
    return "lm-studio"


def resolve_provider(cfg: Settings, selected: Optional[str] = None) -> str:
    """
    Request selection wins, then LLM_PROVIDER, then default_provider().
    Raises ValueError for names we don't know.
    """
    name = (selected or "").strip().lower() or (cfg.llm_provider or "").strip().lower() or default_provider(cfg)
    if name not in PROVIDER_LABELS:
        raise ValueError(f"Unknown provider: {name}")
    return name


settings = Settings()
