"""
Purpose:
- Pydantic models for API in/out so the API is self-documenting and stable.
- Arena payloads keep the camelCase keys the browser pages already read.
"""

from __future__ import annotations
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Transaction(BaseModel):
    """One YNAB CSV row. Every field is a plain string; amounts look like "$12.34"."""

    date: str = ""
    payee: str = ""
    memo: str = ""
    outflow: str = ""
    inflow: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        # edited table cells may come back as null or numbers
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class TokenUsage(BaseModel):
    prompt: int = 0
    completion: int = 0


class ProcessResponse(BaseModel):
    ok: bool = True
    transactions: List[Transaction] = []
    provider: str
    model: str
    usage: TokenUsage = TokenUsage()
    cost: float = 0.0
    warning: Optional[str] = None


class ExportRequest(BaseModel):
    transactions: List[Transaction] = Field(default_factory=list)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ProviderInfo(BaseModel):
    name: str
    label: str
    configured: bool
    default_model: str


class ModelInfo(BaseModel):
    id: str
    name: str
    category: str


class ArenaRequest(CamelModel):
    models: Optional[List[str]] = None
    image_data: Optional[str] = None


class ModelResult(CamelModel):
    model: str
    transactions: List[Transaction] = []
    processing_time: int = 0            # ms
    error: Optional[str] = None
    transaction_count: int = 0
    total_outflow: float = 0.0
    total_inflow: float = 0.0
    cost: float = 0.0
    tokens: Optional[TokenUsage] = None


class ArenaSummary(CamelModel):
    total_models: int
    successful_models: int
    fastest_model: str = ""
    fastest_time: int = 0
    slowest_model: str = ""
    slowest_time: int = 0
    has_consensus: bool = False
    consensus_count: Optional[int] = None
    unanimous: bool = False


class ArenaResponse(CamelModel):
    ok: bool = True
    results: List[ModelResult]
    summary: ArenaSummary
