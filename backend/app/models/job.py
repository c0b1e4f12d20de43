"""
PhosDocs — Synthesis job result contracts.

Every synthesis returns a SynthesisResult with full traceability:
step timings, degradation warnings, the merged content stream and the
assembled DocumentModel.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

from app.models.document import DocumentModel, ImageRef, OutcomeKind


class JobState(str, enum.Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    CLASSIFIED = "CLASSIFIED"
    GENERATED = "GENERATED"
    LOGO_RESOLVED = "LOGO_RESOLVED"
    ASSEMBLED = "ASSEMBLED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: str = "ok"  # ok | skipped | degraded | failed
    detail: str = ""


class CategoryReport(BaseModel):
    category: str
    outcome: OutcomeKind
    attempts: int
    lines: int


class SynthesisResult(BaseModel):
    """Complete output contract for one synthesis call."""

    job_id: str
    state: JobState
    content: str = ""
    categories: list[CategoryReport] = Field(default_factory=list)
    images: list[ImageRef] = Field(default_factory=list)
    timings: list[StepTiming] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    document: DocumentModel

    @property
    def fallback_count(self) -> int:
        return sum(1 for c in self.categories if c.outcome == OutcomeKind.FALLBACK)
