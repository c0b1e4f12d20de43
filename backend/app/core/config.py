"""
PhosDocs — Backend Configuration
Loads .env automatically, then reads all settings from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from app.errors import ConfigError

_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


@dataclass(frozen=True)
class GenerationConfig:
    """Retry/timeout contract for calls to the text-generation service."""
    max_retries: int
    retry_delay_ms: int
    section_timeout_ms: int
    caption_timeout_ms: int
    max_tokens: int
    temperature: float


@dataclass(frozen=True)
class ProviderConfig:
    """Which external text-generation service to call, and how."""
    name: str
    openrouter_api_key: str
    openrouter_base_url: str
    openrouter_model: str
    openrouter_referer: str
    google_api_key: str
    gemini_model: str


@dataclass(frozen=True)
class LimitsConfig:
    max_description_length: int
    max_images: int


@dataclass(frozen=True)
class DocumentConfig:
    version: str
    date_format: str
    logo_target_width: int
    logo_max_height: int


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""
    generation: GenerationConfig
    provider: ProviderConfig
    limits: LimitsConfig
    document: DocumentConfig


def _int(env: Mapping[str, str], *names: str, default: int) -> int:
    """First non-empty variable among ``names`` wins."""
    for name in names:
        raw = env.get(name, "")
        if raw.strip():
            try:
                return int(raw)
            except ValueError:
                raise ConfigError(f"{name} must be an integer, got {raw!r}")
    return default


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env
    return AppConfig(
        generation=GenerationConfig(
            max_retries=_int(env, "SECTION_MAX_RETRIES", "MAX_RETRIES", default=3),
            retry_delay_ms=_int(env, "SECTION_RETRY_DELAY", "RETRY_DELAY", default=2000),
            section_timeout_ms=_int(env, "SECTION_TIMEOUT", "API_TIMEOUT", default=300000),
            caption_timeout_ms=_int(env, "IMAGE_CAPTION_TIMEOUT", default=60000),
            max_tokens=_int(env, "SECTION_MAX_TOKENS", default=500),
            temperature=_float(env, "SECTION_TEMPERATURE", 0.5),
        ),
        provider=ProviderConfig(
            name=env.get("LLM_PROVIDER", "openrouter").strip().lower(),
            openrouter_api_key=env.get("OPENROUTER_API_KEY", ""),
            openrouter_base_url=env.get(
                "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
            ),
            openrouter_model=env.get("OPENROUTER_MODEL", "openai/gpt-3.5-turbo"),
            openrouter_referer=env.get("OPENROUTER_REFERER", "https://phosdocs.com"),
            google_api_key=env.get("GOOGLE_API_KEY", ""),
            gemini_model=env.get("GEMINI_MODEL", "gemini-2.0-flash"),
        ),
        limits=LimitsConfig(
            max_description_length=_int(env, "MAX_DESCRIPTION_LENGTH", default=5000),
            max_images=_int(env, "MAX_IMAGES", default=5),
        ),
        document=DocumentConfig(
            version=env.get("DOCUMENT_VERSION", "1.0.0"),
            date_format=env.get("DATE_FORMAT", "%d/%m/%Y"),
            logo_target_width=_int(env, "LOGO_TARGET_WIDTH", default=120),
            logo_max_height=_int(env, "LOGO_MAX_HEIGHT", default=100),
        ),
    )


def validate_config(cfg: AppConfig) -> None:
    """Fail fast on values the pipeline cannot run with."""
    problems: list[str] = []
    if cfg.generation.max_retries < 1:
        problems.append("MAX_RETRIES must be at least 1")
    if cfg.generation.retry_delay_ms < 0:
        problems.append("RETRY_DELAY must not be negative")
    if cfg.generation.section_timeout_ms <= 0 or cfg.generation.caption_timeout_ms <= 0:
        problems.append("timeouts must be positive")
    if cfg.provider.name not in ("openrouter", "gemini"):
        problems.append(f"LLM_PROVIDER must be 'openrouter' or 'gemini', got {cfg.provider.name!r}")
    if cfg.document.logo_target_width <= 0 or cfg.document.logo_max_height <= 0:
        problems.append("LOGO_TARGET_WIDTH and LOGO_MAX_HEIGHT must be positive")
    if problems:
        raise ConfigError("; ".join(problems))


settings = load_config()
validate_config(settings)
