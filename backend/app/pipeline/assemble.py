"""
PhosDocs — Document assembler.

Turns the merged "[category] text" stream plus metadata into a
DocumentModel:

  - lines grouped by category, sections in DISPLAY_ORDER
  - categories without lines get no section
  - known_issue / deprecated lines are classified upstream but have no
    section; they are dropped here and logged
  - each line filtered to an allowed character set; a line that ends up
    empty, or never had string content, becomes a visible placeholder
    bullet instead of disappearing
  - the logo is passed through as fitted; no scaling happens here
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping

import pydantic

from app.models.document import (
    DISPLAY_ORDER,
    SECTION_HEADINGS,
    Bullet,
    Category,
    DocumentModel,
    DocumentSection,
    FittedImage,
    MetadataRow,
    TaggedLine,
    normalize_line,
)
from app.utils.logging import logger

# Letters, digits, accented Latin letters (minus × and ÷), space, tab, newlines, - . , ; : ! ? ( ) %
_DISALLOWED = re.compile(r"[^A-Za-z0-9À-ÖØ-öø-ÿ \t\n\r\-.,;:!?()%]")

# Characters XML 1.0 cannot carry.
_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

PLACEHOLDER_TEXT = "⚠ Invalid entry: content could not be rendered"


@dataclass(frozen=True)
class DocumentMetadata:
    title: str
    author: str | None = None
    version: str = "1.0.0"
    date_format: str = "%d/%m/%Y"


def sanitize(text: str) -> str:
    """Drop every character outside the allowed set. Identity on allowed text."""
    return _DISALLOWED.sub("", text)


def xml_safe(text: str) -> str:
    """Drop control characters Word XML rejects; everything else is kept."""
    return _XML_INVALID.sub("", text)


def _coerce(item: Any) -> TaggedLine:
    if isinstance(item, TaggedLine):
        return item
    if isinstance(item, str):
        parsed = TaggedLine.parse(item)
        if parsed is not None:
            return parsed
        return TaggedLine(category=Category.FEATURE, content=normalize_line(item))
    if isinstance(item, Mapping):
        try:
            return TaggedLine.model_validate(item)
        except pydantic.ValidationError:
            pass
    logger.warning("  Malformed line %r, rendering placeholder", item)
    return TaggedLine(category=Category.FEATURE, content=None)


def to_bullet(content: Any) -> Bullet:
    if isinstance(content, str):
        text = sanitize(content).strip()
        if text:
            return Bullet(text=text)
    logger.warning("  Line %r is empty after sanitizing, rendering placeholder", content)
    return Bullet(text=PLACEHOLDER_TEXT, placeholder=True)


def _author(meta: DocumentMetadata) -> str | None:
    author = xml_safe(meta.author or "").strip()
    return author or None


def metadata_rows(meta: DocumentMetadata, today: date) -> tuple[MetadataRow, ...]:
    rows = [
        MetadataRow(label="Version", value=xml_safe(meta.version)),
        MetadataRow(label="Release Date", value=today.strftime(meta.date_format)),
    ]
    author = _author(meta)
    if author:
        rows.append(MetadataRow(label="Author", value=author))
    return tuple(rows)


def assemble(
    lines: Iterable[TaggedLine | str | Mapping[str, Any]],
    metadata: DocumentMetadata,
    logo: FittedImage | None = None,
    today: date | None = None,
) -> DocumentModel:
    """Build the DocumentModel. Same inputs and ``today`` give an equal model."""
    today = today or date.today()

    grouped: dict[Category, list[Bullet]] = {}
    dropped: Counter[str] = Counter()
    for item in lines:
        line = _coerce(item)
        if line.category not in SECTION_HEADINGS:
            dropped[line.category.value] += 1
            continue
        grouped.setdefault(line.category, []).append(to_bullet(line.content))

    for category, count in sorted(dropped.items()):
        logger.warning("  Dropped %d '%s' line(s): category has no document section", count, category)

    sections = tuple(
        DocumentSection(
            category=category,
            heading=SECTION_HEADINGS[category],
            bullets=tuple(grouped[category]),
        )
        for category in DISPLAY_ORDER
        if grouped.get(category)
    )

    if logo is None:
        logger.info("  No logo, header left empty")

    return DocumentModel(
        title=xml_safe(metadata.title),
        author=_author(metadata),
        version=xml_safe(metadata.version),
        date=today,
        date_label=today.strftime(metadata.date_format),
        logo=logo,
        metadata=metadata_rows(metadata, today),
        sections=sections,
    )
