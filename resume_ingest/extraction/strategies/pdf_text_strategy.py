import threading

from resume_ingest.extraction.exceptions import (
    DocumentLockedError,
    EmptyOrCorruptInputError,
    TextExtractionError,
)
from resume_ingest.extraction.models import Approach, Document
from resume_ingest.extraction.strategies.base import (
    BaseStrategy,
    ProgressCallback,
    WarningCallback,
)
from resume_ingest.logging.logger import Log
from resume_ingest.pdf.base import BasePdfBackend
from resume_ingest.pdf.exceptions import PdfBackendError, PdfEncryptedError


class PdfTextStrategy(BaseStrategy):
    """Reads the embedded text layer of a PDF, page by page."""

    name = "pdf_text"
    priority = 100
    approach = Approach.TEXT_EXTRACTION
    supported_media_types = frozenset({"application/pdf"})
    expected_extensions = frozenset({"pdf"})

    def __init__(self, backend: BasePdfBackend) -> None:
        self._backend = backend

    def _extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> str:
        try:
            pdf = self._backend.open(document.content)
        except PdfEncryptedError as exc:
            raise DocumentLockedError(
                f"PDF '{document.name}' is password protected",
                context={"backend": self._backend.name},
            ) from exc
        except PdfBackendError as exc:
            raise EmptyOrCorruptInputError(
                f"Invalid PDF format: {exc}",
                retryable=True,
                context={"backend": self._backend.name},
            ) from exc

        with pdf:
            total = pdf.page_count
            pages: list[str] = []
            for page_number in range(1, total + 1):
                self.check_cancelled(cancel_event)
                self.report(
                    on_progress,
                    page_number - 1,
                    total,
                    f"Extracting text from page {page_number} of {total}",
                )
                page_text = pdf.page_text(page_number)
                if page_text.strip():
                    pages.append(page_text)
            self.report(on_progress, total, total, "Text extraction complete")

        text = "\n".join(pages)
        if not text.strip():
            raise TextExtractionError(
                "No text could be extracted; document may be image-based",
                context={"page_count": total},
            )
        Log.debug(f"pdf_text extracted {len(text)} characters from {total} pages")
        return text
