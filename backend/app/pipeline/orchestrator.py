"""
PhosDocs — Synthesis orchestrator.

Runs one synthesis request as a state machine:

  RECEIVED → VALIDATED → CLASSIFIED → GENERATED → LOGO_RESOLVED
  → ASSEMBLED → DELIVERED

Each step is timed, logged, and recorded in the SynthesisResult.
Only ConfigError aborts the run (state FAILED); generation failures end
in fallback text and logo failures in an empty header.
"""

from __future__ import annotations

import time
import uuid
from datetime import date

from app.core.config import AppConfig, settings
from app.errors import ConfigError, ImageProcessingError
from app.images.fit import fit
from app.llm.client import TextBackend, build_backend
from app.models.document import (
    SECTION_HEADINGS,
    Category,
    DocumentModel,
    Entry,
    FittedImage,
    GenerationOutcome,
    ImageRef,
    SynthesisRequest,
    TaggedLine,
)
from app.models.job import CategoryReport, JobState, StepTiming, SynthesisResult
from app.pipeline.assemble import DocumentMetadata, assemble
from app.pipeline.classify import Classifier, batch_by_category
from app.pipeline.generate import ResilientGenerator
from app.utils.logging import logger
from app.utils.validate import truncate_description


def resolve_logo(source: str | bytes | None, cfg: AppConfig) -> tuple[FittedImage | None, str | None]:
    """Fit the logo; any image failure becomes (None, warning)."""
    if not source:
        return None, None
    try:
        logo = fit(
            source,
            max_width=cfg.document.logo_target_width,
            max_height=cfg.document.logo_max_height,
        )
    except ImageProcessingError as exc:
        logger.warning("  Logo discarded: %s (%s)", exc.message, exc.code)
        return None, f"Logo discarded: {exc.message}"
    return logo, None


def document_metadata(title: str, author: str | None, cfg: AppConfig) -> DocumentMetadata:
    return DocumentMetadata(
        title=title,
        author=author,
        version=cfg.document.version,
        date_format=cfg.document.date_format,
    )


class PipelineContext:
    """Mutable context passed through pipeline steps."""

    def __init__(self, request: SynthesisRequest):
        self.request = request
        self.entries: list[Entry] = []
        self.batches: dict[Category, str] = {}
        self.outcomes: list[GenerationOutcome] = []
        self.lines: list[TaggedLine] = []
        self.images: list[ImageRef] = []
        self.logo: FittedImage | None = None
        self.document: DocumentModel | None = None
        self.warnings: list[str] = []


class SynthesisOrchestrator:
    """
    State-machine orchestrator for one synthesis request.

    Categories are generated sequentially unless ``concurrent`` is set;
    either way the merged stream follows category order, not completion
    order.
    """

    def __init__(
        self,
        request: SynthesisRequest,
        generator: ResilientGenerator,
        config: AppConfig | None = None,
        classifier: Classifier | None = None,
        concurrent: bool = False,
        today: date | None = None,
    ):
        self.job_id = uuid.uuid4().hex[:12]
        self.config = config or settings
        self.generator = generator
        self.classifier = classifier or Classifier()
        self.concurrent = concurrent
        self.today = today
        self.state = JobState.RECEIVED
        self.ctx = PipelineContext(request)
        self.timings: list[StepTiming] = []

    def _record_step(self, name: str, start: float, status: str = "ok", detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))
        symbol = {"ok": "✓", "skipped": "⊘", "degraded": "!"}.get(status, "✗")
        logger.info("  %s %s — %dms %s", symbol, name, ms, detail)

    @property
    def content(self) -> str:
        return "\n".join(line.render() for line in self.ctx.lines)

    async def run(self) -> SynthesisResult:
        """Execute the full pipeline. Returns a complete SynthesisResult."""
        logger.info("=" * 60)
        logger.info("[%s] Synthesis starting: %s", self.job_id, self.ctx.request.title)
        logger.info("=" * 60)
        pipeline_start = time.perf_counter()

        try:
            self._step_validate()
            self._step_classify()
            await self._step_generate()
            await self._step_captions()
            self._step_logo()
            self._step_assemble()
            self.state = JobState.DELIVERED
        except ConfigError:
            self.state = JobState.FAILED
            raise

        total_ms = int((time.perf_counter() - pipeline_start) * 1000)
        logger.info("=" * 60)
        logger.info(
            "[%s] Synthesis complete — %d lines, %d sections, %d warnings, %dms",
            self.job_id, len(self.ctx.lines), len(self.ctx.document.sections),
            len(self.ctx.warnings), total_ms,
        )
        logger.info("=" * 60)

        return SynthesisResult(
            job_id=self.job_id,
            state=self.state,
            content=self.content,
            categories=[
                CategoryReport(
                    category=o.category.value,
                    outcome=o.kind,
                    attempts=o.attempts,
                    lines=len(o.lines),
                )
                for o in self.ctx.outcomes
            ],
            images=self.ctx.images,
            timings=self.timings,
            warnings=self.ctx.warnings,
            document=self.ctx.document,
        )

    def _step_validate(self):
        t = time.perf_counter()
        request = self.ctx.request
        limit = self.config.limits.max_description_length
        description = truncate_description(request.description, limit)
        if description != request.description:
            self.ctx.warnings.append(f"Description truncated to {limit} characters.")
            self.ctx.request = request.model_copy(update={"description": description})
        self.state = JobState.VALIDATED
        self._record_step("validate", t, detail=f"{len(description)} chars")

    def _step_classify(self):
        t = time.perf_counter()
        self.ctx.entries = self.classifier.classify(self.ctx.request.description)
        self.ctx.batches = batch_by_category(self.ctx.entries)
        self.state = JobState.CLASSIFIED
        self._record_step(
            "classify", t,
            detail=f"{len(self.ctx.entries)} entries → {', '.join(c.value for c in self.ctx.batches) or 'none'}",
        )

    async def _step_generate(self):
        t = time.perf_counter()
        if not self.ctx.batches:
            self.state = JobState.GENERATED
            self._record_step("generate", t, "skipped", "no entries")
            return

        try:
            self.ctx.outcomes = await self.generator.generate_batches(
                self.ctx.batches, self.ctx.request.title, concurrent=self.concurrent,
            )
        except ConfigError as exc:
            self._record_step("generate", t, "failed", exc.message)
            raise

        for outcome in self.ctx.outcomes:
            self.ctx.lines.extend(outcome.lines)
            if outcome.is_fallback:
                self.ctx.warnings.append(
                    f"Section '{outcome.category.value}' used fallback text after {outcome.attempts} attempts."
                )
            if outcome.category not in SECTION_HEADINGS:
                self.ctx.warnings.append(
                    f"Section '{outcome.category.value}' is not rendered in the document."
                )

        fallbacks = sum(1 for o in self.ctx.outcomes if o.is_fallback)
        self.state = JobState.GENERATED
        self._record_step(
            "generate", t,
            "degraded" if fallbacks else "ok",
            f"{len(self.ctx.outcomes)} sections, {fallbacks} fallback",
        )

    async def _step_captions(self):
        t = time.perf_counter()
        images: list[ImageRef] = []
        generated = 0
        for image in self.ctx.request.images:
            if image.caption:
                images.append(image)
                continue
            caption = await self.generator.generate_caption(image.description or image.url)
            images.append(image.model_copy(update={"caption": caption}))
            generated += 1
        self.ctx.images = images
        if not generated:
            self._record_step("captions", t, "skipped", "nothing to caption")
            return
        self._record_step("captions", t, detail=f"{generated} captions")

    def _step_logo(self):
        t = time.perf_counter()
        source = self.ctx.request.logo_source
        if not source:
            self.state = JobState.LOGO_RESOLVED
            self._record_step("logo", t, "skipped", "no logo")
            return

        self.ctx.logo, warning = resolve_logo(source, self.config)
        self.state = JobState.LOGO_RESOLVED
        if warning:
            self.ctx.warnings.append(warning)
            self._record_step("logo", t, "degraded", warning)
            return
        self._record_step("logo", t, detail=f"{self.ctx.logo.width}x{self.ctx.logo.height}")

    def _step_assemble(self):
        t = time.perf_counter()
        request = self.ctx.request
        self.ctx.document = assemble(
            self.ctx.lines,
            document_metadata(request.title, request.author, self.config),
            logo=self.ctx.logo,
            today=self.today,
        )
        self.state = JobState.ASSEMBLED
        self._record_step("assemble", t, detail=f"{len(self.ctx.document.sections)} sections")


async def synthesize(
    request: SynthesisRequest,
    backend: TextBackend | None = None,
    config: AppConfig | None = None,
    concurrent: bool = False,
) -> SynthesisResult:
    """Classify, generate and assemble in one call."""
    config = config or settings
    generator = ResilientGenerator(backend or build_backend(config), config=config.generation)
    orchestrator = SynthesisOrchestrator(request, generator, config=config, concurrent=concurrent)
    return await orchestrator.run()
