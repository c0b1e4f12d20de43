"""
PhosDocs — Structured error catalog.

Every error has a code, human message, and suggested fix.
Only ConfigError is allowed to cross the synthesis pipeline boundary;
everything else is absorbed and degraded into an observable marker.
"""

from __future__ import annotations

from typing import Any


class PhosDocsError(Exception):
    """Base error with structured code + suggestion."""

    def __init__(self, code: str, message: str, suggestion: str = "", detail: Any = None):
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


class ConfigError(PhosDocsError):
    """Deployment misconfiguration. Never recovered automatically."""

    kind = "ConfigError"

    def __init__(self, message: str, suggestion: str = ""):
        super().__init__(
            code="CONFIG_ERROR",
            message=message,
            suggestion=suggestion or "Check the .env file of this deployment.",
        )

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["kind"] = self.kind
        return d


class MissingPromptError(ConfigError):
    def __init__(self, category: str):
        self.category = category
        super().__init__(
            message=f"Prompt templates for section '{category}' are not configured",
            suggestion=(
                f"Set SECTION_{category.upper()}_SYSTEM and "
                f"SECTION_{category.upper()}_USER, or restore the default registry."
            ),
        )


class ValidationError(PhosDocsError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            code="VALIDATION_FAILED",
            message=f"Input validation failed: {'; '.join(errors)}",
            suggestion="Check required fields: title (string), description (string).",
            detail=errors,
        )


class TransientGenerationError(PhosDocsError):
    """One failed or timed-out call to the text-generation service."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(
            code="GENERATION_FAILED",
            message=f"{provider}: {message}",
            suggestion="The call is retried; fallback text is used once retries run out.",
        )


class ImageProcessingError(PhosDocsError):
    """Base class for logo decoding/validation failures."""


class UnsupportedFormatError(ImageProcessingError):
    def __init__(self, fmt: str, supported: list[str]):
        super().__init__(
            code="IMAGE_UNSUPPORTED_FORMAT",
            message=f"Unsupported image format: {fmt or 'unknown'}",
            suggestion=f"Use one of: {', '.join(supported)}.",
        )


class ImageTooSmallError(ImageProcessingError):
    def __init__(self, width: int, height: int, min_width: int, min_height: int):
        super().__init__(
            code="IMAGE_TOO_SMALL",
            message=f"Image is {width}x{height}px, minimum is {min_width}x{min_height}px",
            suggestion="Upload a larger logo.",
        )


class ImageTooLargeError(ImageProcessingError):
    def __init__(self, width: int, height: int, max_width: int, max_height: int):
        super().__init__(
            code="IMAGE_TOO_LARGE",
            message=f"Image is {width}x{height}px, maximum is {max_width}x{max_height}px",
            suggestion="Resize the logo before uploading.",
        )


class ImageDecodeError(ImageProcessingError):
    def __init__(self, message: str):
        super().__init__(
            code="IMAGE_DECODE_FAILED",
            message=f"Could not decode image: {message}",
            suggestion="The file may be corrupt or truncated. Export it again.",
        )
