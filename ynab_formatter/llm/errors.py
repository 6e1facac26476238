"""
Purpose:
- Exceptions raised by provider clients and the response parser.
- Routes translate them to HTTP status codes; nothing below the API layer knows about HTTP.
"""

from __future__ import annotations


class ProviderError(Exception):
    """Upstream LLM call failed."""

    status_code = 500

    def __init__(self, provider_label: str, message: str):
        super().__init__(message)
        self.provider_label = provider_label
        self.message = message

    @property
    def public_message(self) -> str:
        return f"{self.provider_label} API error: {self.message}"


class ProviderAuthError(ProviderError):
    """Upstream rejected our API key."""

    status_code = 401

    @property
    def public_message(self) -> str:
        return f"Invalid API key for {self.provider_label}"


class ProviderUnavailableError(ProviderError):
    """Upstream could not be reached at all."""

    status_code = 503

    @property
    def public_message(self) -> str:
        return self.message


class ProviderNotConfiguredError(ProviderError):
    status_code = 500

    def __init__(self, provider_label: str):
        super().__init__(provider_label, "API key not configured")

    @property
    def public_message(self) -> str:
        return f"{self.provider_label} API key not configured"


class ResponseError(Exception):
    """Reply arrived but is unusable."""

    status_code = 502
    public_message = "Could not parse AI response"


class EmptyResponseError(ResponseError):
    public_message = "AI response did not contain text content"


class ResponseParseError(ResponseError):
    pass


class ResponseShapeError(ResponseError):
    status_code = 422
    public_message = "AI response did not include a transaction list"
