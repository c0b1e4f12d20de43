"""
PhosDocs — Text-generation backend contract.

The external service is a black box:

  generate(system_prompt, user_prompt, params) -> text

Backends raise TransientGenerationError (or any other exception) on
failure; retries, timeouts and fallbacks belong to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from app.core.config import AppConfig


@dataclass(frozen=True)
class GenerationParams:
    max_tokens: int = 500
    temperature: float = 0.5
    timeout_s: float = 300.0


class TextBackend(Protocol):
    name: str

    async def __call__(
        self, system_prompt: str, user_prompt: str, params: GenerationParams
    ) -> str:
        ...


def build_backend(cfg: AppConfig) -> TextBackend:
    """Instantiate the backend named by LLM_PROVIDER."""
    if cfg.provider.name == "gemini":
        from app.llm.gemini import GeminiBackend
        return GeminiBackend(
            api_key=cfg.provider.google_api_key,
            model=cfg.provider.gemini_model,
        )

    from app.llm.openrouter import OpenRouterBackend
    return OpenRouterBackend(
        api_key=cfg.provider.openrouter_api_key,
        base_url=cfg.provider.openrouter_base_url,
        model=cfg.provider.openrouter_model,
        referer=cfg.provider.openrouter_referer,
    )
