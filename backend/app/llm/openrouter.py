"""
PhosDocs — OpenRouter chat-completions backend.

Uses the OpenAI-compatible endpoint:
  POST {BASE_URL}/chat/completions

Auth: bearer token. OpenRouter also reads HTTP-Referer / X-Title to
attribute traffic to the app.
"""

from __future__ import annotations

from typing import Any

import httpx

from app.errors import TransientGenerationError
from app.llm.client import GenerationParams
from app.utils.logging import logger


class OpenRouterBackend:
    """Thin async wrapper around one chat-completions call."""

    name = "openrouter"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "openai/gpt-3.5-turbo",
        referer: str = "https://phosdocs.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.referer = referer
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": "PhosDocs - Section Processor",
        }

    def _payload(self, system_prompt: str, user_prompt: str, params: GenerationParams) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
        }

    async def __call__(
        self, system_prompt: str, user_prompt: str, params: GenerationParams
    ) -> str:
        if not self.api_key:
            raise TransientGenerationError(self.name, "OPENROUTER_API_KEY is not set")

        async with httpx.AsyncClient(
            timeout=params.timeout_s, transport=self._transport
        ) as client:
            resp = await client.post(
                f"{self.base_url}/chat/completions",
                json=self._payload(system_prompt, user_prompt, params),
                headers=self._headers(),
            )

        if resp.status_code >= 400:
            raise TransientGenerationError(
                self.name, f"HTTP {resp.status_code}: {resp.text[:200]}"
            )

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise TransientGenerationError(self.name, f"malformed response: {exc}")

        if not content or not content.strip():
            raise TransientGenerationError(self.name, "empty completion")

        logger.debug("  OpenRouter returned %d chars", len(content))
        return content
