"""
PhosDocs — Input validation for synthesis payloads.

Title and description are required. Descriptions beyond
MAX_DESCRIPTION_LENGTH are truncated with an ellipsis marker; more than
MAX_IMAGES images are rejected.
"""

from typing import Any

import pydantic

from app.core.config import LimitsConfig, settings
from app.errors import ValidationError
from app.models.document import SynthesisRequest

ELLIPSIS = "..."

REQUIRED_FIELDS = ["title", "description"]


def truncate_description(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(ELLIPSIS))].rstrip() + ELLIPSIS


def validate_synthesis_payload(
    data: dict[str, Any], limits: LimitsConfig | None = None
) -> SynthesisRequest:
    """
    Validate the incoming payload and return a SynthesisRequest.
    Raises ValidationError on failure.
    """
    limits = limits or settings.limits
    errors: list[str] = []

    for field in REQUIRED_FIELDS:
        if field not in data or not isinstance(data[field], str) or not data[field].strip():
            errors.append(f"Missing required field: '{field}'")

    images = data.get("images") or []
    if len(images) > limits.max_images:
        errors.append(f"Maximum {limits.max_images} images allowed.")

    if errors:
        raise ValidationError(errors)

    payload = dict(data)
    payload["images"] = images
    payload["description"] = truncate_description(
        data["description"], limits.max_description_length
    )
    try:
        return SynthesisRequest(**payload)
    except pydantic.ValidationError as exc:
        raise ValidationError([f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()])
