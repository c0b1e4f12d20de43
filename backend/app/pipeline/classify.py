"""
PhosDocs — Line classifier.

Maps free-form change descriptions to categorized entries, one entry per
non-blank line. Evaluation per line, first match wins:

  1. explicit leading marker, e.g. "[bug] login crash"   (alias table)
  2. keyword heuristic on the lowercased line           (ordered keyword sets)
  3. default: feature

A leading tag that is not in the alias table is still stripped; the rest
of the line then goes through the keyword heuristic. The alias and
keyword tables are plain data so they can be swapped for another locale
or tested table-by-table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from app.models.document import CATEGORY_ORDER, Category, Entry
from app.utils.logging import logger

_MARKER = re.compile(r"^\s*\[([^\]]*)\]\s*(.*)$", re.DOTALL)

MARKER_ALIASES: Mapping[str, Category] = MappingProxyType({
    "nova": Category.FEATURE,
    "novo": Category.FEATURE,
    "new": Category.FEATURE,
    "funcionalidade": Category.FEATURE,
    "feature": Category.FEATURE,
    "correção": Category.BUGFIX,
    "correcao": Category.BUGFIX,
    "bug": Category.BUGFIX,
    "fixed": Category.BUGFIX,
    "fix": Category.BUGFIX,
    "performance": Category.PERFORMANCE,
    "melhoria": Category.PERFORMANCE,
    "speed": Category.PERFORMANCE,
    "segurança": Category.SECURITY,
    "seguranca": Category.SECURITY,
    "security": Category.SECURITY,
    "recurso": Category.RESOURCE,
    "resource": Category.RESOURCE,
    "manual": Category.RESOURCE,
    "enhancement": Category.ENHANCEMENT,
    "aprimoramento": Category.ENHANCEMENT,
    "known_issue": Category.KNOWN_ISSUE,
    "problema": Category.KNOWN_ISSUE,
    "deprecated": Category.DEPRECATED,
    "obsoleto": Category.DEPRECATED,
})

# Evaluated top to bottom; the first set with any occurrence wins.
KEYWORD_SETS: tuple[tuple[Category, frozenset[str]], ...] = (
    (Category.FEATURE, frozenset({
        "nova", "novo", "new", "adicionad", "added", "implementad",
        "funcionalidade", "feature",
    })),
    (Category.ENHANCEMENT, frozenset({
        "aprimora", "melhorad", "improve", "enhance", "atualizad", "updated",
    })),
    (Category.BUGFIX, frozenset({
        "corrigid", "correção", "correcao", "corrige", "bug", "fix",
        "erro", "error", "resolvid",
    })),
    (Category.PERFORMANCE, frozenset({
        "performance", "desempenho", "otimiz", "optimiz", "faster",
        "latência", "latency",
    })),
    (Category.SECURITY, frozenset({
        "segurança", "seguranca", "security", "vulnerab", "cve",
        "autenticação", "authentication", "criptograf", "encrypt",
    })),
    (Category.KNOWN_ISSUE, frozenset({
        "problema conhecido", "known issue", "limitação", "limitation",
        "workaround",
    })),
    (Category.DEPRECATED, frozenset({
        "descontinuad", "obsolet", "deprecat", "removid", "removed",
    })),
    (Category.RESOURCE, frozenset({
        "recurso", "resource", "manual", "documentação", "documentation",
        "guia", "guide",
    })),
)


@dataclass(frozen=True)
class ClassifierTables:
    aliases: Mapping[str, Category] = field(default_factory=lambda: MARKER_ALIASES)
    keywords: tuple[tuple[Category, frozenset[str]], ...] = KEYWORD_SETS
    default: Category = Category.FEATURE


DEFAULT_TABLES = ClassifierTables()


class Classifier:
    """Deterministic line classifier over injected alias/keyword tables."""

    def __init__(self, tables: ClassifierTables = DEFAULT_TABLES):
        self.tables = tables
        self._aliases = {k.lower(): v for k, v in tables.aliases.items()}

    def classify(self, text: str | None) -> list[Entry]:
        if not text:
            return []

        entries: list[Entry] = []
        for raw in text.splitlines():
            line = raw.strip()
            if not line:
                continue
            entries.append(self.classify_line(line))

        logger.debug("  Classified %d lines", len(entries))
        return entries

    def classify_line(self, line: str) -> Entry:
        match = _MARKER.match(line)
        if match:
            category = self._aliases.get(match.group(1).strip().lower())
            line = match.group(2).strip()
            if category is not None:
                return Entry(category=category, content=line)

        lowered = line.lower()
        for category, keywords in self.tables.keywords:
            if any(keyword in lowered for keyword in keywords):
                return Entry(category=category, content=line)

        return Entry(category=self.tables.default, content=line)


_default_classifier = Classifier()


def classify(text: str | None) -> list[Entry]:
    """Classify ``text`` with the default tables."""
    return _default_classifier.classify(text)


def batch_by_category(entries: list[Entry]) -> dict[Category, str]:
    """
    Join entry contents per category, keeping input order within a
    category. Keys come out in CATEGORY_ORDER.
    """
    grouped: dict[Category, list[str]] = {}
    for entry in entries:
        grouped.setdefault(entry.category, []).append(entry.content)
    return {
        category: "\n".join(grouped[category])
        for category in CATEGORY_ORDER
        if category in grouped
    }
