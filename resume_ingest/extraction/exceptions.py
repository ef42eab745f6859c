"""Typed extraction failures shared by the analyzer, strategies and orchestrator."""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar


class ErrorKind(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    EMPTY_OR_CORRUPT_INPUT = "empty_or_corrupt_input"
    TEXT_EXTRACTION_FAILED = "text_extraction_failed"
    OCR_FAILED = "ocr_failed"
    TIMEOUT = "timeout"
    VALIDATION_FAILED = "validation_failed"
    LOCKED = "locked"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    FATAL = "fatal"


class ParserError(Exception):
    """Base exception for every extraction failure.

    Subclasses fix the ``kind`` and provide defaults for ``severity``,
    ``retryable`` and the user-facing message; any of them can be
    overridden per instance.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.UNKNOWN
    default_severity: ClassVar[Severity] = Severity.HIGH
    default_retryable: ClassVar[bool] = True
    default_user_message: ClassVar[str] = (
        "An error occurred while processing your resume. "
        "Please try again or use a different file."
    )
    default_suggestions: ClassVar[tuple[str, ...]] = ("Try a different file",)

    def __init__(
        self,
        message: str,
        *,
        severity: Severity | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        user_message: str | None = None,
        suggestions: tuple[str, ...] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.severity = severity if severity is not None else self.default_severity
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context: dict[str, Any] = dict(context or {})
        self.user_message = user_message or self.default_user_message
        self.suggestions = suggestions if suggestions is not None else self.default_suggestions

    @property
    def code(self) -> str:
        return self.kind.value.upper()

    def with_context(self, **context: Any) -> ParserError:
        """Add context keys that are not already set and return self."""
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "context": dict(self.context),
            "suggestions": list(self.suggestions),
        }


class UnsupportedTypeError(ParserError):
    """Raised when no strategy (or not this strategy) supports the document type."""

    kind = ErrorKind.UNSUPPORTED_TYPE
    default_severity = Severity.MEDIUM
    default_retryable = False
    default_user_message = (
        "This file type is not supported. Please upload a PDF, DOCX, DOC, TXT, RTF, "
        "or image file."
    )
    default_suggestions = (
        "Convert to PDF format",
        "Use a supported file type (PDF, DOCX, images)",
    )


class EmptyOrCorruptInputError(ParserError):
    """Raised for zero-byte documents and damaged containers."""

    kind = ErrorKind.EMPTY_OR_CORRUPT_INPUT
    default_user_message = (
        "The selected file appears to be empty or corrupted. Please choose a different file."
    )
    default_suggestions = ("Try re-downloading the file", "Check file integrity")


class TextExtractionError(ParserError):
    kind = ErrorKind.TEXT_EXTRACTION_FAILED
    default_user_message = (
        "No text could be extracted from this file. It may be image-based or corrupted."
    )
    default_suggestions = ("Try OCR processing", "Export the document again as PDF")


class OcrError(ParserError):
    kind = ErrorKind.OCR_FAILED
    default_severity = Severity.MEDIUM
    default_user_message = (
        "Could not extract text from the image-based content. "
        "The image quality may be too poor."
    )
    default_suggestions = ("Use a higher resolution scan", "Upload a text-based PDF")


class ExtractionTimeoutError(ParserError):
    kind = ErrorKind.TIMEOUT
    default_user_message = (
        "Processing took too long and was cancelled. "
        "Please try with a smaller file or simpler format."
    )
    default_suggestions = ("Try a smaller file", "Use a simpler document layout")


class ValidationFailedError(ParserError):
    kind = ErrorKind.VALIDATION_FAILED
    default_severity = Severity.MEDIUM
    default_user_message = (
        "Not enough information could be extracted from the resume. "
        "Please check if the file contains readable text."
    )


class DocumentLockedError(ParserError):
    """Raised for password-protected documents."""

    kind = ErrorKind.LOCKED
    default_retryable = False
    default_user_message = (
        "This document is password protected. Please provide an unlocked file."
    )
    default_suggestions = ("Remove password protection", "Use an unlocked version")


class ExtractionCancelledError(ParserError):
    kind = ErrorKind.CANCELLED
    default_severity = Severity.FATAL
    default_retryable = False
    default_user_message = "Processing was cancelled."
    default_suggestions = ()


class UnknownParserError(ParserError):
    kind = ErrorKind.UNKNOWN


class DocumentParsingError(Exception):
    """Raised when every strategy and fallback has been exhausted.

    Carries the error of each attempt in the order they were made.
    """

    def __init__(self, document_name: str, errors: list[ParserError]) -> None:
        if not errors:
            raise ValueError("DocumentParsingError requires at least one ParserError")
        self.document_name = document_name
        self.errors = list(errors)
        summary = "; ".join(f"[{e.code}] {e.message}" for e in self.errors)
        super().__init__(
            f"All extraction attempts failed for '{document_name}' "
            f"({len(self.errors)} errors): {summary}"
        )

    @property
    def kinds(self) -> list[ErrorKind]:
        return [e.kind for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "document": self.document_name,
            "errors": [e.to_dict() for e in self.errors],
        }


_CLASSIFIERS: tuple[tuple[tuple[str, ...], type[ParserError], dict[str, Any]], ...] = (
    (("password", "encrypted"), DocumentLockedError, {}),
    (
        ("invalid pdf", "pdf format", "corrupt", "not a zip", "bad zip", "zip file"),
        EmptyOrCorruptInputError,
        {"retryable": True},
    ),
    (("tesseract", "ocr", "recognition"), OcrError, {}),
    (("timed out", "timeout"), ExtractionTimeoutError, {}),
)


def wrap_error(exc: BaseException, **context: Any) -> ParserError:
    """Convert any exception into a ParserError, attaching context.

    A ParserError is returned unchanged apart from filling in missing
    context keys. Other exceptions are classified by their message; the
    caller is expected to ``raise wrapped from exc``.
    """
    if isinstance(exc, ParserError):
        return exc.with_context(**context)

    text = str(exc) or type(exc).__name__
    lowered = text.lower()
    for keywords, error_cls, overrides in _CLASSIFIERS:
        if any(keyword in lowered for keyword in keywords):
            return error_cls(text, context=context, **overrides)
    return UnknownParserError(
        text, context={**context, "exception_type": type(exc).__name__}
    )
