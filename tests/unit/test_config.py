"""Unit tests for environment configuration, prompt templates and payload validation."""

import pytest

from app.core.config import LimitsConfig, load_config, validate_config
from app.errors import ConfigError, ValidationError
from app.templates.registry import CAPTION_KEY, DEFAULT_TEMPLATES, load_templates
from app.utils.validate import truncate_description, validate_synthesis_payload


class TestLoadConfig:
    def test_defaults(self):
        cfg = load_config({})
        assert cfg.generation.max_retries == 3
        assert cfg.generation.retry_delay_ms == 2000
        assert cfg.generation.section_timeout_ms == 300000
        assert cfg.generation.caption_timeout_ms == 60000
        assert cfg.provider.name == "openrouter"
        assert cfg.limits.max_description_length == 5000
        assert cfg.limits.max_images == 5
        assert cfg.document.version == "1.0.0"
        assert (cfg.document.logo_target_width, cfg.document.logo_max_height) == (120, 100)
        validate_config(cfg)

    def test_section_specific_names_win(self):
        cfg = load_config({
            "MAX_RETRIES": "5",
            "SECTION_MAX_RETRIES": "2",
            "RETRY_DELAY": "100",
            "API_TIMEOUT": "9000",
            "SECTION_TIMEOUT": "",
        })
        assert cfg.generation.max_retries == 2
        assert cfg.generation.retry_delay_ms == 100
        assert cfg.generation.section_timeout_ms == 9000

    def test_non_integer_is_config_error(self):
        with pytest.raises(ConfigError, match="MAX_RETRIES"):
            load_config({"MAX_RETRIES": "three"})

    def test_non_number_temperature(self):
        with pytest.raises(ConfigError, match="SECTION_TEMPERATURE"):
            load_config({"SECTION_TEMPERATURE": "warm"})

    def test_provider_is_normalized(self):
        assert load_config({"LLM_PROVIDER": " Gemini "}).provider.name == "gemini"

    @pytest.mark.parametrize("env,fragment", [
        ({"MAX_RETRIES": "0"}, "MAX_RETRIES"),
        ({"RETRY_DELAY": "-1"}, "RETRY_DELAY"),
        ({"API_TIMEOUT": "0"}, "timeouts"),
        ({"LLM_PROVIDER": "carrier-pigeon"}, "LLM_PROVIDER"),
        ({"LOGO_MAX_HEIGHT": "0"}, "LOGO_"),
    ])
    def test_validate_rejects(self, env, fragment):
        with pytest.raises(ConfigError, match=fragment):
            validate_config(load_config(env))


class TestTemplates:
    def test_every_category_has_a_template(self):
        assert set(DEFAULT_TEMPLATES) == {
            "feature", "bugfix", "performance", "enhancement", "security",
            "resource", "known_issue", "deprecated", CAPTION_KEY,
        }

    def test_env_overrides(self):
        templates = load_templates({
            "SECTION_BUGFIX_USER": "Fix list for {TITLE}: {CONTENT}",
            "IMAGE_CAPTION_PROMPT": "Caption: {DESCRIPTION}",
        })
        assert templates["bugfix"].user == "Fix list for {TITLE}: {CONTENT}"
        assert templates["bugfix"].system == DEFAULT_TEMPLATES["bugfix"].system
        assert templates[CAPTION_KEY].render_user(description="chart") == "Caption: chart"
        assert templates["feature"] == DEFAULT_TEMPLATES["feature"]

    def test_render_user(self):
        text = DEFAULT_TEMPLATES["feature"].render_user(title="Acme 2", content="export")
        assert "Acme 2" in text and "export" in text
        assert "{" not in text


class TestValidatePayload:
    LIMITS = LimitsConfig(max_description_length=20, max_images=1)

    def test_valid(self):
        req = validate_synthesis_payload({"title": "Acme", "description": "new export"}, self.LIMITS)
        assert req.title == "Acme"
        assert req.description == "new export"

    def test_missing_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_synthesis_payload({"title": "  "}, self.LIMITS)
        assert len(exc_info.value.errors) == 2

    def test_too_many_images(self):
        images = [{"url": "https://x/a.png"}, {"url": "https://x/b.png"}]
        with pytest.raises(ValidationError, match="Maximum 1 images"):
            validate_synthesis_payload(
                {"title": "T", "description": "d", "images": images}, self.LIMITS,
            )

    def test_long_description_truncated(self):
        req = validate_synthesis_payload({"title": "T", "description": "x" * 50}, self.LIMITS)
        assert len(req.description) == 20
        assert req.description.endswith("...")

    def test_bad_image_entry(self):
        with pytest.raises(ValidationError):
            validate_synthesis_payload(
                {"title": "T", "description": "d", "images": [{"description": "no url"}]},
                self.LIMITS,
            )

    def test_truncate_is_noop_when_short(self):
        assert truncate_description("short", 10) == "short"


class TestRenderUser:
    def test_values_are_not_rescanned(self):
        text = DEFAULT_TEMPLATES["feature"].render_user(title="Notes {CONTENT}", content="export")
        assert "Notes {CONTENT}" in text
        assert text.count("export") == 1

    def test_unknown_placeholders_stay(self):
        template = DEFAULT_TEMPLATES["feature"].model_copy(update={"user": "{TITLE} {OTHER}"})
        assert template.render_user(title="T") == "T {OTHER}"
