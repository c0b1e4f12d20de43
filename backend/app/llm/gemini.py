"""
PhosDocs — Google Gemini backend.

Selected with LLM_PROVIDER=gemini. Needs GOOGLE_API_KEY.
"""

from __future__ import annotations

import google.generativeai as genai

from app.errors import TransientGenerationError
from app.llm.client import GenerationParams


class GeminiBackend:
    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self.api_key = api_key
        self.model = model
        if api_key:
            genai.configure(api_key=api_key)

    async def __call__(
        self, system_prompt: str, user_prompt: str, params: GenerationParams
    ) -> str:
        if not self.api_key:
            raise TransientGenerationError(self.name, "GOOGLE_API_KEY is not set")

        model = genai.GenerativeModel(
            self.model,
            system_instruction=system_prompt,
            generation_config=genai.GenerationConfig(
                max_output_tokens=params.max_tokens,
                temperature=params.temperature,
            ),
        )
        response = await model.generate_content_async(user_prompt)

        if not response or not response.text:
            raise TransientGenerationError(self.name, "empty completion")
        # Strip markdown fences if present
        return response.text.replace("```", "").strip()
