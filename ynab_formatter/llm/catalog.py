"""
Purpose:
- OpenRouter vision models offered on the model arena page, grouped by vendor.
- ":free" suffixes are OpenRouter's zero-cost variants (rate limited).
"""

from __future__ import annotations
from typing import List

from ..schemas import ModelInfo

AVAILABLE_MODELS: List[ModelInfo] = [
    ModelInfo(id="anthropic/claude-3-haiku", name="Claude 3 Haiku", category="anthropic"),
    ModelInfo(id="google/gemini-2.5-flash-lite", name="Gemini 2.5 Flash Lite", category="google"),
    ModelInfo(id="google/gemma-3-27b-it:free", name="Gemma 3 27B (FREE)", category="google"),
    ModelInfo(id="meta-llama/llama-3.2-11b-vision-instruct", name="Llama 3.2 11B Vision", category="meta"),
    ModelInfo(id="meta-llama/llama-4-scout:free", name="Llama 4 Scout (FREE)", category="meta"),
    ModelInfo(id="mistralai/pixtral-12b", name="Pixtral 12B", category="mistral"),
    ModelInfo(id="mistralai/mistral-small-3.1-24b-instruct:free", name="Mistral Small 3.1 24B (FREE)", category="mistral"),
    ModelInfo(id="openai/gpt-5-mini", name="GPT-5 Mini", category="openai"),
    ModelInfo(id="openai/gpt-4o-mini", name="GPT-4o Mini", category="openai"),
    ModelInfo(id="moonshotai/kimi-vl-a3b-thinking:free", name="Kimi VL A3B Thinking (FREE)", category="moonshot"),
    ModelInfo(id="bytedance/ui-tars-1.5-7b", name="UI-TARS 1.5 7B", category="bytedance"),
    ModelInfo(id="minimax/minimax-01", name="MiniMax-01", category="minimax"),
    ModelInfo(id="qwen/qwen-2.5-vl-7b-instruct", name="Qwen 2.5 VL 7B", category="qwen"),
    ModelInfo(id="qwen/qwen2.5-vl-32b-instruct:free", name="Qwen 2.5 VL 32B (FREE)", category="qwen"),
    ModelInfo(id="qwen/qwen2.5-vl-72b-instruct:free", name="Qwen 2.5 VL 72B (FREE)", category="qwen"),
    ModelInfo(id="x-ai/grok-4-fast:free", name="Grok 4 Fast (FREE)", category="xai"),
    ModelInfo(id="z-ai/glm-4.5v", name="GLM-4.5V", category="zai"),
]


def categories() -> List[str]:
    return list(dict.fromkeys(m.category for m in AVAILABLE_MODELS))


def models_in_category(category: str) -> List[str]:
    key = (category or "").strip().lower()
    return [m.id for m in AVAILABLE_MODELS if m.category == key]
