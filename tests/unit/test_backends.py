"""Unit tests for text-generation backends (no network)."""

import json

import httpx
import pytest

from app.core.config import load_config
from app.errors import TransientGenerationError
from app.llm.client import GenerationParams, build_backend
from app.llm.openrouter import OpenRouterBackend

PARAMS = GenerationParams(max_tokens=64, temperature=0.1, timeout_s=5)


def make_backend(handler, api_key="sk-test"):
    return OpenRouterBackend(
        api_key=api_key,
        base_url="https://openrouter.test/api/v1/",
        model="test/model",
        transport=httpx.MockTransport(handler),
    )


class TestOpenRouterBackend:
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "Fixed login."}}]})

        text = await make_backend(handler)("SYS", "USER", PARAMS)
        assert text == "Fixed login."
        assert seen["url"] == "https://openrouter.test/api/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "test/model"
        assert seen["body"]["messages"] == [
            {"role": "system", "content": "SYS"},
            {"role": "user", "content": "USER"},
        ]
        assert seen["body"]["max_tokens"] == 64

    async def test_http_error(self):
        backend = make_backend(lambda r: httpx.Response(503, text="overloaded"))
        with pytest.raises(TransientGenerationError, match="HTTP 503"):
            await backend("s", "u", PARAMS)

    @pytest.mark.parametrize("body", [
        {"choices": []},
        {"unexpected": True},
        {"choices": [{"message": {"content": "   "}}]},
    ])
    async def test_unusable_response(self, body):
        backend = make_backend(lambda r: httpx.Response(200, json=body))
        with pytest.raises(TransientGenerationError):
            await backend("s", "u", PARAMS)

    async def test_missing_key_never_calls_out(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        with pytest.raises(TransientGenerationError, match="OPENROUTER_API_KEY"):
            await make_backend(handler, api_key="")("s", "u", PARAMS)
        assert calls == []


class TestBuildBackend:
    def test_default_is_openrouter(self):
        backend = build_backend(load_config({"OPENROUTER_API_KEY": "k"}))
        assert backend.name == "openrouter"
        assert backend.api_key == "k"

    def test_gemini(self):
        pytest.importorskip("google.generativeai")
        backend = build_backend(load_config({"LLM_PROVIDER": "gemini", "GOOGLE_API_KEY": "g"}))
        assert backend.name == "gemini"
