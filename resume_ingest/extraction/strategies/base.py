import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, ClassVar

from resume_ingest.extraction.exceptions import (
    EmptyOrCorruptInputError,
    ExtractionCancelledError,
    ExtractionTimeoutError,
    ParserError,
    Severity,
    UnsupportedTypeError,
    ValidationFailedError,
    wrap_error,
)
from resume_ingest.extraction.models import Approach, Document
from resume_ingest.extraction.text_cleaner import clean_text
from resume_ingest.logging.logger import Log

ProgressCallback = Callable[[int, int, str], None]
"""Called as (completed, total, status) while a strategy works."""

WarningCallback = Callable[[str], None]
"""Called with a warning that should reach the extraction result."""

_POLL_INTERVAL_S = 0.05


class CallbackGate:
    """Forwards calls to a callback until closed; drops everything afterwards."""

    def __init__(self, callback: Callable[..., None] | None) -> None:
        self._callback = callback
        self._lock = threading.Lock()
        self._closed = False

    def __call__(self, *args: Any) -> None:
        with self._lock:
            if self._closed or self._callback is None:
                return
            self._callback(*args)

    def close(self) -> None:
        with self._lock:
            self._closed = True


class BaseStrategy(ABC):
    """Contract and shared helpers for every text extraction strategy."""

    name: ClassVar[str]
    priority: ClassVar[int]
    approach: ClassVar[Approach]
    supported_media_types: ClassVar[frozenset[str]]
    expected_extensions: ClassVar[frozenset[str]]

    LARGE_FILE_BYTES: ClassVar[int] = 10 * 1024 * 1024
    SMALL_FILE_BYTES: ClassVar[int] = 1024

    def can_handle(self, document: Document) -> bool:
        return (
            document.base_media_type in self.supported_media_types
            or document.extension in self.expected_extensions
        )

    def confidence_score(self, document: Document) -> int:
        """Estimate 0-100 how likely this strategy is to succeed on the document."""
        if not self.can_handle(document):
            return 0

        confidence = 50
        if document.base_media_type in self.supported_media_types:
            confidence += 30
        if document.extension in self.expected_extensions:
            confidence += 20
        if document.size > self.LARGE_FILE_BYTES:
            confidence -= 10
        if document.size < self.SMALL_FILE_BYTES:
            confidence -= 20
        return max(0, min(100, confidence))

    def extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        on_warning: WarningCallback | None = None,
    ) -> str:
        """Extract and clean the document's text.

        Raises:
            ParserError: on any failure; foreign exceptions are wrapped with
                document and strategy context.
        """
        self.validate_document(document)
        context = {
            "document": document.name,
            "media_type": document.media_type,
            "strategy": self.name,
            "phase": self.approach.value,
        }
        try:
            raw = self._extract(document, on_progress, cancel_event, on_warning)
        except ParserError as exc:
            exc.with_context(**context)
            raise
        except Exception as exc:
            raise wrap_error(exc, **context) from exc
        return clean_text(raw)

    @abstractmethod
    def _extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> str:
        """Return the raw text of the document."""

    def extract_with_timeout(
        self,
        document: Document,
        timeout_ms: int,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        on_warning: WarningCallback | None = None,
    ) -> str:
        """Run extract() in a worker thread, racing it against a deadline.

        When the deadline (or the caller's cancel_event) wins, the worker is
        told to abandon its work, its progress updates and warnings stop being forwarded,
        and any result it still produces is discarded.
        """
        progress_gate = CallbackGate(on_progress)
        warning_gate = CallbackGate(on_warning)
        abandon = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"extract-{self.name}")
        future = executor.submit(self.extract, document, progress_gate, abandon, warning_gate)
        deadline = time.monotonic() + timeout_ms / 1000
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ExtractionTimeoutError(
                        f"{self.name} strategy timed out after {timeout_ms}ms",
                        context={
                            "document": document.name,
                            "strategy": self.name,
                            "timeout_ms": timeout_ms,
                        },
                    )
                done, _ = wait([future], timeout=min(remaining, _POLL_INTERVAL_S))
                if done:
                    return future.result()
                if cancel_event is not None and cancel_event.is_set():
                    raise ExtractionCancelledError(
                        f"{self.name} extraction cancelled by caller",
                        context={"document": document.name, "strategy": self.name},
                    )
        finally:
            progress_gate.close()
            warning_gate.close()
            abandon.set()
            executor.shutdown(wait=False, cancel_futures=True)

    def validate_document(self, document: Document) -> None:
        """Reject documents this strategy must not touch, before any work."""
        if document.size == 0:
            raise EmptyOrCorruptInputError(
                f"File '{document.name}' is empty (0 bytes)",
                severity=Severity.FATAL,
                retryable=False,
                context={"document": document.name, "strategy": self.name},
            )
        if not self.can_handle(document):
            raise UnsupportedTypeError(
                f"File type {document.media_type or 'unknown'} not supported by "
                f"{self.name} strategy",
                context={
                    "document": document.name,
                    "media_type": document.media_type,
                    "strategy": self.name,
                },
            )

    def validate_extracted_text(self, text: str | None, min_length: int = 20) -> list[str]:
        """Fail on empty text; return warnings for suspiciously short text."""
        if text is None or not text.strip():
            raise ValidationFailedError(
                f"Extracted text is empty ({self.name})",
                context={"strategy": self.name, "extracted_length": 0},
            )
        length = len(text.strip())
        if length < min_length:
            warning = (
                f"{self.name}: extracted text is very short ({length} characters, "
                f"expected at least {min_length})"
            )
            Log.warning(warning)
            return [warning]
        return []

    def check_cancelled(self, cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ExtractionCancelledError(f"{self.name} extraction was abandoned")

    @staticmethod
    def report(
        on_progress: ProgressCallback | None, completed: int, total: int, status: str
    ) -> None:
        if on_progress is not None:
            on_progress(completed, total, status)

    @staticmethod
    def warn(on_warning: WarningCallback | None, message: str) -> None:
        Log.warning(message)
        if on_warning is not None:
            on_warning(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
