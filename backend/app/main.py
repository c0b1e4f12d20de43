"""
PhosDocs — FastAPI Backend

Endpoints:
  POST /v1/documentation/generate       — description → categorized content stream
  POST /v1/documentation/download-word  — content stream (+ logo) → .docx
  POST /v1/documentation/synthesize     — description (+ logo) → .docx in one call
  GET  /v1/prompts                      — List prompt templates
  GET  /health                          — Health check
"""

import base64
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.core.config import settings
from app.errors import ConfigError, PhosDocsError
from app.llm.client import TextBackend, build_backend
from app.pipeline.assemble import assemble
from app.pipeline.generate import ResilientGenerator
from app.pipeline.orchestrator import SynthesisOrchestrator, document_metadata, resolve_logo
from app.render.docx_writer import render_docx
from app.templates.registry import list_templates
from app.utils.logging import logger
from app.utils.validate import validate_synthesis_payload

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

app = FastAPI(
    title="PhosDocs API",
    description=(
        "Turn free-form technical change descriptions into categorized, "
        "styled Word release documents."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-PhosDocs-Job", "X-Pipeline-Duration-Ms", "X-Request-Id"],
)


# ──────────────────────────────────────────────────────────
# Request models and dependencies
# ──────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    title: str = Field(..., description="Document title")
    description: str = Field(..., description="Free-form change notes, one change per line")
    author: str | None = Field(default=None, description="Author row of the metadata table")
    images: list[dict[str, Any]] = Field(default_factory=list)
    logo_base64: str | None = Field(
        default=None, description="Optional logo as data:image/<format>;base64,... URI"
    )


class DownloadWordRequest(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = Field(..., description="Tagged content stream, one '[category] text' per line")
    author: str | None = None
    logo_base64: str | None = None


def get_text_backend() -> TextBackend:
    return build_backend(settings)


def get_generator(backend: TextBackend = Depends(get_text_backend)) -> ResilientGenerator:
    return ResilientGenerator(backend)


def _docx_filename(title: str) -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{re.sub(r'[^a-zA-Z0-9]', '_', title)}_{timestamp}.docx"


async def _run_pipeline(req: GenerateRequest, generator: ResilientGenerator, request_id: str):
    payload = req.model_dump(exclude={"logo_base64"})
    payload["logo_source"] = req.logo_base64
    try:
        synthesis = validate_synthesis_payload(payload)
        orchestrator = SynthesisOrchestrator(synthesis, generator)
        return await orchestrator.run()
    except ConfigError as exc:
        logger.error("[%s] Configuration error: %s", request_id, exc.message)
        raise HTTPException(status_code=500, detail=exc.to_dict())
    except PhosDocsError as exc:
        logger.warning("[%s] PhosDocs error: %s", request_id, exc.code)
        raise HTTPException(status_code=422, detail=exc.to_dict())


# ──────────────────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"status": "ok", "service": "phosdocs-api", "version": "1.0.0"}


@app.get("/v1/prompts")
async def get_prompts():
    """List prompt templates (system prompts omitted)."""
    return [t.model_dump(exclude={"system"}) for t in list_templates()]


@app.post("/v1/documentation/generate")
async def generate_documentation(req: GenerateRequest, generator: ResilientGenerator = Depends(get_generator)):
    """
    Classify the description, rewrite each category through the text
    service and return the merged content stream.
    """
    request_id = uuid.uuid4().hex[:12]
    logger.info(
        "[%s] POST /v1/documentation/generate — %s (%d chars, %d images)",
        request_id, req.title, len(req.description), len(req.images),
    )
    result = await _run_pipeline(req, generator, request_id)

    return {
        "success": True,
        "documentation": {
            "title": req.title,
            "content": result.content,
            "originalDescription": req.description,
            "images": [i.model_dump() for i in result.images],
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "wordCount": len(result.content.split()),
            "characterCount": len(result.content),
        },
        "metadata": {
            "jobId": result.job_id,
            "categories": [c.model_dump() for c in result.categories],
            "warnings": result.warnings,
            "imageCount": len(result.images),
        },
    }


@app.post(
    "/v1/documentation/download-word",
    response_class=Response,
    responses={200: {"content": {DOCX_MEDIA_TYPE: {}}, "description": "Word document"}},
)
async def download_word(req: DownloadWordRequest):
    """Assemble an already generated content stream into a Word document."""
    request_id = uuid.uuid4().hex[:12]
    if not req.content.strip():
        raise HTTPException(status_code=400, detail={"error_code": "VALIDATION_FAILED", "message": "Content cannot be empty"})

    logger.info("[%s] POST /v1/documentation/download-word — %s", request_id, req.title)
    logo, warning = resolve_logo(req.logo_base64, settings)
    document = assemble(
        [line for line in req.content.split("\n") if line.strip()],
        document_metadata(req.title, req.author, settings),
        logo=logo,
    )
    data = render_docx(document)

    headers = {
        "Content-Disposition": f'attachment; filename="{_docx_filename(req.title)}"',
        "Cache-Control": "no-cache, no-store, must-revalidate",
        "X-Request-Id": request_id,
    }
    if warning:
        headers["X-PhosDocs-Warning"] = warning.encode("ascii", "replace").decode("ascii")
    return Response(content=data, media_type=DOCX_MEDIA_TYPE, headers=headers)


@app.post(
    "/v1/documentation/synthesize",
    response_class=Response,
    responses={
        200: {"content": {DOCX_MEDIA_TYPE: {}}, "description": "Word document"},
        422: {"description": "Validation error"},
        500: {"description": "Configuration error"},
    },
)
async def synthesize_document(req: GenerateRequest, generator: ResilientGenerator = Depends(get_generator)):
    """
    Full pipeline in one call. The X-PhosDocs-Job header carries the
    SynthesisResult (without the document) as base64 JSON.
    """
    request_id = uuid.uuid4().hex[:12]
    start = time.perf_counter()
    logger.info("[%s] POST /v1/documentation/synthesize — %s", request_id, req.title)

    result = await _run_pipeline(req, generator, request_id)
    data = render_docx(result.document)

    elapsed_ms = (time.perf_counter() - start) * 1000
    job_json = result.model_dump_json(exclude={"document"})
    job_b64 = base64.b64encode(job_json.encode()).decode("ascii")

    return Response(
        content=data,
        media_type=DOCX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{_docx_filename(req.title)}"',
            "X-Pipeline-Duration-Ms": f"{elapsed_ms:.0f}",
            "X-Request-Id": request_id,
            "X-PhosDocs-Job": job_b64,
        },
    )
