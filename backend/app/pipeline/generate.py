"""
PhosDocs — Resilient section generator.

Wraps one external text-generation call per category with:

  - a timeout race per attempt (timeout == failure)
  - at most MAX_RETRIES attempts
  - a constant RETRY_DELAY between failed attempts (no backoff)
  - deterministic fallback text once attempts run out

The retry loop is an explicit state machine:

  RetryState(attempt, last_error) --fail--> RETRY | EXHAUSTED
                                  --ok----> SUCCESS

Only a missing prompt template (MissingPromptError, a ConfigError) is
raised to the caller. Every other failure ends in a fallback outcome.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping

from app.core.config import GenerationConfig, settings
from app.errors import MissingPromptError, TransientGenerationError
from app.llm.client import GenerationParams, TextBackend
from app.models.document import (
    Category,
    GenerationOutcome,
    GenerationRequest,
    OutcomeKind,
    category_rank,
)
from app.templates.registry import CAPTION_KEY, TEMPLATES, PromptTemplate
from app.utils.logging import logger

EMPTY_CONTENT_PLACEHOLDER = "-"

Sleep = Callable[[float], Awaitable[None]]


class Transition(str, enum.Enum):
    SUCCESS = "success"
    RETRY = "retry"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    retry_delay_s: float = 2.0
    timeout_s: float = 300.0

    @classmethod
    def for_sections(cls, cfg: GenerationConfig) -> "RetryPolicy":
        return cls(
            max_retries=cfg.max_retries,
            retry_delay_s=cfg.retry_delay_ms / 1000,
            timeout_s=cfg.section_timeout_ms / 1000,
        )

    @classmethod
    def for_captions(cls, cfg: GenerationConfig) -> "RetryPolicy":
        return cls(
            max_retries=cfg.max_retries,
            retry_delay_s=cfg.retry_delay_ms / 1000,
            timeout_s=cfg.caption_timeout_ms / 1000,
        )


@dataclass(frozen=True)
class RetryState:
    attempt: int = 0
    last_error: Exception | None = None

    def succeed(self) -> tuple["RetryState", Transition]:
        return RetryState(self.attempt + 1, None), Transition.SUCCESS

    def fail(self, error: Exception, policy: RetryPolicy) -> tuple["RetryState", Transition]:
        state = RetryState(self.attempt + 1, error)
        if state.attempt >= policy.max_retries:
            return state, Transition.EXHAUSTED
        return state, Transition.RETRY


def fallback_text(category: Category, content: str) -> str:
    return f"[{category.value}] {category.value.capitalize()}\n{content}"


def caption_fallback(description: str) -> str:
    return f"Technical image - {description}"


async def race(call: Callable[[], Awaitable[str]], timeout_s: float) -> str:
    """One attempt: the call against the clock. Empty text counts as failure."""
    try:
        text = await asyncio.wait_for(call(), timeout=timeout_s)
    except asyncio.TimeoutError:
        raise TransientGenerationError("timeout", f"no answer after {timeout_s:g}s")
    if not isinstance(text, str) or not text.strip():
        raise TransientGenerationError("backend", "empty response")
    return text.strip()


async def run_with_retries(
    call: Callable[[], Awaitable[str]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
    label: str = "call",
) -> tuple[str | None, RetryState]:
    """Drive the retry state machine. Returns (text or None, final state)."""
    state = RetryState()
    while True:
        try:
            text = await race(call, policy.timeout_s)
        except Exception as exc:
            state, transition = state.fail(exc, policy)
            logger.warning(
                "  %s — attempt %d/%d failed: %s",
                label, state.attempt, policy.max_retries, exc,
            )
            if transition is Transition.EXHAUSTED:
                return None, state
            logger.info("  %s — waiting %.1fs before retrying", label, policy.retry_delay_s)
            await sleep(policy.retry_delay_s)
            continue

        state, _ = state.succeed()
        logger.info("  %s — attempt %d/%d succeeded", label, state.attempt, policy.max_retries)
        return text, state


class ResilientGenerator:
    """Rewrites category content through an unreliable text backend."""

    def __init__(
        self,
        backend: TextBackend,
        templates: Mapping[str, PromptTemplate] | None = None,
        config: GenerationConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        cfg = config or settings.generation
        self.backend = backend
        self.templates = TEMPLATES if templates is None else templates
        self.section_policy = RetryPolicy.for_sections(cfg)
        self.caption_policy = RetryPolicy.for_captions(cfg)
        self.max_tokens = cfg.max_tokens
        self.temperature = cfg.temperature
        self._sleep = sleep

    def _params(self, policy: RetryPolicy) -> GenerationParams:
        return GenerationParams(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            timeout_s=policy.timeout_s,
        )

    def _section_template(self, category: Category) -> PromptTemplate:
        template = self.templates.get(category.value)
        if template is None:
            raise MissingPromptError(category.value)
        return template

    async def generate(self, category: Category | str, content: str, title: str) -> GenerationOutcome:
        category = Category(category)
        template = self._section_template(category)

        prompt_content = content if content.strip() else EMPTY_CONTENT_PLACEHOLDER
        user_prompt = template.render_user(title=title, content=prompt_content)
        params = self._params(self.section_policy)

        text, state = await run_with_retries(
            lambda: self.backend(template.system, user_prompt, params),
            self.section_policy,
            sleep=self._sleep,
            label=f"section {category.value}",
        )
        if text is not None:
            return GenerationOutcome(
                kind=OutcomeKind.SUCCESS, category=category, text=text, attempts=state.attempt,
            )

        logger.error(
            "  section %s — all %d attempts failed, using fallback text",
            category.value, state.attempt,
        )
        return GenerationOutcome(
            kind=OutcomeKind.FALLBACK,
            category=category,
            text=fallback_text(category, content),
            attempts=state.attempt,
        )

    async def generate_request(self, request: GenerationRequest) -> GenerationOutcome:
        return await self.generate(request.category, request.content, request.title)

    async def generate_batches(
        self,
        batches: Mapping[Category, str],
        title: str,
        concurrent: bool = False,
    ) -> list[GenerationOutcome]:
        """
        One call per category. Results are ordered by category rank,
        never by completion time. Every template is resolved before the
        first call, so a missing one fails the batch without starting any.
        """
        for category in batches:
            self._section_template(Category(category))

        requests = [
            GenerationRequest(category=c, content=text, title=title)
            for c, text in batches.items()
        ]
        if concurrent:
            tasks = [asyncio.ensure_future(self.generate_request(r)) for r in requests]
            try:
                outcomes = list(await asyncio.gather(*tasks))
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise
        else:
            outcomes = [await self.generate_request(r) for r in requests]
        return sorted(outcomes, key=lambda o: category_rank(o.category))

    async def generate_caption(self, description: str) -> str:
        template = self.templates.get(CAPTION_KEY)
        if template is None:
            logger.warning("  No image caption prompt configured, using default caption")
            return caption_fallback(description)

        user_prompt = template.render_user(description=description)
        params = self._params(self.caption_policy)
        text, state = await run_with_retries(
            lambda: self.backend(template.system, user_prompt, params),
            self.caption_policy,
            sleep=self._sleep,
            label="image caption",
        )
        if text is None:
            logger.error("  All %d caption attempts failed, using default caption", state.attempt)
            return caption_fallback(description)
        return text
