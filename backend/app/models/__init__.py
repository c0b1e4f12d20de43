"""PhosDocs data models — typed contracts for the entire pipeline."""

from app.models.document import (
    CATEGORY_ORDER,
    DISPLAY_ORDER,
    Bullet,
    Category,
    DocumentModel,
    DocumentSection,
    Entry,
    FittedImage,
    GenerationOutcome,
    GenerationRequest,
    ImageRef,
    MetadataRow,
    OutcomeKind,
    SynthesisRequest,
    TaggedLine,
)
from app.models.job import (
    CategoryReport,
    JobState,
    StepTiming,
    SynthesisResult,
)

__all__ = [
    "CATEGORY_ORDER",
    "DISPLAY_ORDER",
    "Bullet",
    "Category",
    "DocumentModel",
    "DocumentSection",
    "Entry",
    "FittedImage",
    "GenerationOutcome",
    "GenerationRequest",
    "ImageRef",
    "MetadataRow",
    "OutcomeKind",
    "SynthesisRequest",
    "TaggedLine",
    "CategoryReport",
    "JobState",
    "StepTiming",
    "SynthesisResult",
]
