"""
PhosDocs — Prompt template registry.

Ships one system/user prompt pair per change category plus the image
caption prompt. Each pair can be overridden from the environment:

  SECTION_<CATEGORY>_SYSTEM / SECTION_<CATEGORY>_USER   e.g. SECTION_BUGFIX_USER
  IMAGE_CAPTION_PROMPT                                   uses {DESCRIPTION}

User templates take {TITLE} and {CONTENT} placeholders.
"""

from __future__ import annotations

import os
import re
from typing import Mapping

from pydantic import BaseModel

from app.models.document import Category

CAPTION_KEY = "image_caption"

_PLACEHOLDER = re.compile(r"\{([A-Z_]+)\}")

_SYSTEM_BASE = (
    "You are a technical writer producing release documentation. "
    "Rewrite the notes you receive as short, clear bullet lines, one change "
    "per line, without markdown, numbering or bracketed tags. Keep product "
    "names, version numbers and identifiers exactly as written."
)


class PromptTemplate(BaseModel):
    key: str
    name: str
    system: str
    user: str

    def render_user(self, **values: str) -> str:
        """Substitute ``{NAME}`` placeholders in one pass; unknown ones stay as written."""
        return _PLACEHOLDER.sub(
            lambda m: values.get(m.group(1).lower(), m.group(0)), self.user
        )


DEFAULT_TEMPLATES: dict[str, PromptTemplate] = {
    Category.FEATURE.value: PromptTemplate(
        key=Category.FEATURE.value,
        name="New Features",
        system=_SYSTEM_BASE + " Focus on what users can now do.",
        user="Document: {TITLE}\nDescribe these new features for end users:\n{CONTENT}",
    ),
    Category.BUGFIX.value: PromptTemplate(
        key=Category.BUGFIX.value,
        name="Bug Fixes",
        system=_SYSTEM_BASE + " State the symptom that was fixed, not the code change.",
        user="Document: {TITLE}\nDescribe these bug fixes:\n{CONTENT}",
    ),
    Category.PERFORMANCE.value: PromptTemplate(
        key=Category.PERFORMANCE.value,
        name="Performance Improvements",
        system=_SYSTEM_BASE + " Keep any measured numbers and units.",
        user="Document: {TITLE}\nDescribe these performance improvements:\n{CONTENT}",
    ),
    Category.ENHANCEMENT.value: PromptTemplate(
        key=Category.ENHANCEMENT.value,
        name="Enhancements",
        system=_SYSTEM_BASE + " Describe how existing behaviour got better.",
        user="Document: {TITLE}\nDescribe these enhancements:\n{CONTENT}",
    ),
    Category.SECURITY.value: PromptTemplate(
        key=Category.SECURITY.value,
        name="Security",
        system=_SYSTEM_BASE + " Never include exploit details; keep CVE identifiers.",
        user="Document: {TITLE}\nDescribe these security changes:\n{CONTENT}",
    ),
    Category.RESOURCE.value: PromptTemplate(
        key=Category.RESOURCE.value,
        name="Resources",
        system=_SYSTEM_BASE + " Point readers to the material they can use.",
        user="Document: {TITLE}\nDescribe these resources and documentation updates:\n{CONTENT}",
    ),
    Category.KNOWN_ISSUE.value: PromptTemplate(
        key=Category.KNOWN_ISSUE.value,
        name="Known Issues",
        system=_SYSTEM_BASE + " Mention workarounds when given.",
        user="Document: {TITLE}\nDescribe these known issues:\n{CONTENT}",
    ),
    Category.DEPRECATED.value: PromptTemplate(
        key=Category.DEPRECATED.value,
        name="Deprecations",
        system=_SYSTEM_BASE + " Mention the replacement when given.",
        user="Document: {TITLE}\nDescribe these deprecations:\n{CONTENT}",
    ),
    CAPTION_KEY: PromptTemplate(
        key=CAPTION_KEY,
        name="Image Caption",
        system=(
            "You write one-sentence captions for screenshots and diagrams in "
            "technical documentation. Answer with the caption only."
        ),
        user="Write a caption for this image: {DESCRIPTION}",
    ),
}


def load_templates(env: Mapping[str, str] | None = None) -> dict[str, PromptTemplate]:
    """Defaults with environment overrides applied."""
    env = os.environ if env is None else env
    templates: dict[str, PromptTemplate] = {}
    for key, template in DEFAULT_TEMPLATES.items():
        if key == CAPTION_KEY:
            caption = env.get("IMAGE_CAPTION_PROMPT")
            if caption:
                template = template.model_copy(update={"user": caption})
        else:
            prefix = f"SECTION_{key.upper()}"
            overrides = {
                field: env[f"{prefix}_{field.upper()}"]
                for field in ("system", "user")
                if env.get(f"{prefix}_{field.upper()}")
            }
            if overrides:
                template = template.model_copy(update=overrides)
        templates[key] = template
    return templates


TEMPLATES: dict[str, PromptTemplate] = load_templates()


def list_templates() -> list[PromptTemplate]:
    return list(TEMPLATES.values())
