"""
PhosDocs — Typed synthesis data model.

Classifier, generator, assembler and serializer all work against these
types. Values are frozen: each synthesis request builds its own and
nothing is shared across requests.
"""

from __future__ import annotations

import enum
import re
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Category(str, enum.Enum):
    FEATURE = "feature"
    BUGFIX = "bugfix"
    PERFORMANCE = "performance"
    SECURITY = "security"
    RESOURCE = "resource"
    ENHANCEMENT = "enhancement"
    KNOWN_ISSUE = "known_issue"
    DEPRECATED = "deprecated"


# Sections rendered in the document, in this order.
DISPLAY_ORDER: tuple[Category, ...] = (
    Category.FEATURE,
    Category.BUGFIX,
    Category.PERFORMANCE,
    Category.ENHANCEMENT,
    Category.SECURITY,
    Category.RESOURCE,
)

# Generation/merge order: rendered categories first, then the ones that
# are classified but never rendered.
CATEGORY_ORDER: tuple[Category, ...] = DISPLAY_ORDER + (
    Category.KNOWN_ISSUE,
    Category.DEPRECATED,
)

SECTION_HEADINGS: dict[Category, str] = {
    Category.FEATURE: "New Features",
    Category.BUGFIX: "Bug Fixes",
    Category.PERFORMANCE: "Performance Improvements",
    Category.ENHANCEMENT: "Enhancements",
    Category.SECURITY: "Security",
    Category.RESOURCE: "Resources",
}

_TAGGED_LINE = re.compile(r"^\s*\[([^\]]+)\]\s*(.*)$", re.DOTALL)


def category_rank(category: Category) -> int:
    return CATEGORY_ORDER.index(category)


class Entry(BaseModel):
    """One classified input line. Content may be empty for a marker-only line."""

    model_config = ConfigDict(frozen=True)

    category: Category
    content: str


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    content: str
    title: str


class TaggedLine(BaseModel):
    """
    One line of the merged content stream.

    ``content`` is typed loosely: lines arriving from outside the
    pipeline may carry a non-string payload, which the assembler
    renders as a placeholder bullet.
    """

    model_config = ConfigDict(frozen=True)

    category: Category
    content: Any = ""

    def render(self) -> str:
        return f"[{self.category.value}] {self.content}"

    @classmethod
    def parse(cls, raw: str) -> "TaggedLine | None":
        """Parse ``"[category] text"``; None when the tag is missing or unknown."""
        match = _TAGGED_LINE.match(raw)
        if not match:
            return None
        try:
            category = Category(match.group(1).strip().lower())
        except ValueError:
            return None
        return cls(category=category, content=match.group(2).strip())


_LEADING_TAGS = re.compile(r"^(?:\s*\[[^\]]*\]\s*)+")


def normalize_line(line: str) -> str:
    """Trim and strip every leading ``[tag]``. Idempotent."""
    return _LEADING_TAGS.sub("", line).strip()


class OutcomeKind(str, enum.Enum):
    SUCCESS = "success"
    FALLBACK = "fallback"


class GenerationOutcome(BaseModel):
    """Result of one category generation: rewritten text or deterministic fallback."""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    category: Category
    text: str
    attempts: int = 0

    @property
    def is_fallback(self) -> bool:
        return self.kind == OutcomeKind.FALLBACK

    @property
    def lines(self) -> list[TaggedLine]:
        """Split, drop blanks, strip echoed tags, re-tag with this category."""
        return [
            TaggedLine(category=self.category, content=normalize_line(raw))
            for raw in self.text.split("\n")
            if raw.strip()
        ]


class FittedImage(BaseModel):
    """Re-encoded image plus the display box it must be drawn in (pixels)."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    format: Literal["png", "jpeg", "gif", "webp"] = "png"


class Bullet(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    placeholder: bool = False


class DocumentSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    heading: str
    bullets: tuple[Bullet, ...]


class MetadataRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class DocumentModel(BaseModel):
    """
    Fully assembled, serializer-ready document.

    Built once per synthesis request by the assembler and consumed once
    by the Word serializer.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    author: str | None = None
    version: str
    date: date
    date_label: str
    logo: FittedImage | None = None
    metadata: tuple[MetadataRow, ...]
    sections: tuple[DocumentSection, ...] = ()

    def section(self, category: Category) -> DocumentSection | None:
        for s in self.sections:
            if s.category == category:
                return s
        return None

    @property
    def categories(self) -> list[Category]:
        return [s.category for s in self.sections]


class ImageRef(BaseModel):
    url: str = Field(min_length=1, max_length=2000)
    description: str = Field(default="", max_length=500)
    caption: str | None = Field(default=None, max_length=500)


class SynthesisRequest(BaseModel):
    """Input handed over by the HTTP layer."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    author: str | None = Field(default=None, max_length=200)
    images: list[ImageRef] = Field(default_factory=list)
    logo_source: str | bytes | None = Field(default=None, repr=False)
