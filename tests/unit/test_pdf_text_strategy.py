import threading

import pytest

from resume_ingest.extraction.exceptions import (
    DocumentLockedError,
    EmptyOrCorruptInputError,
    ExtractionCancelledError,
    TextExtractionError,
)
from resume_ingest.extraction.models import Document
from resume_ingest.extraction.strategies.pdf_text_strategy import PdfTextStrategy
from resume_ingest.pdf.pdfplumber_adapter import PdfPlumberBackend
from tests.fakes import FakePage, FakePdfBackend


def _pdf(content: bytes = b"%PDF-1.4 fake", name: str = "cv.pdf") -> Document:
    return Document(name=name, media_type="application/pdf", content=content)


class TestPdfTextStrategy:
    def test_joins_page_text(self) -> None:
        backend = FakePdfBackend(
            [FakePage(text="Jane Doe\nEngineer"), FakePage(text="Skills: Python")]
        )
        text = PdfTextStrategy(backend).extract(_pdf())
        assert text == "Jane Doe Engineer Skills: Python"

    def test_closes_document(self) -> None:
        backend = FakePdfBackend([FakePage(text="Jane Doe")])
        PdfTextStrategy(backend).extract(_pdf())
        assert backend.opened[0].closed is True

    def test_skips_blank_pages(self) -> None:
        backend = FakePdfBackend([FakePage(text="  "), FakePage(text="Jane Doe")])
        assert PdfTextStrategy(backend).extract(_pdf()) == "Jane Doe"

    def test_no_text_is_extraction_failure(self) -> None:
        backend = FakePdfBackend([FakePage(), FakePage()])
        with pytest.raises(TextExtractionError, match="image-based") as exc_info:
            PdfTextStrategy(backend).extract(_pdf())
        assert exc_info.value.retryable is True
        assert exc_info.value.context["page_count"] == 2
        assert exc_info.value.context["strategy"] == "pdf_text"

    def test_encrypted_is_locked(self) -> None:
        with pytest.raises(DocumentLockedError):
            PdfTextStrategy(FakePdfBackend(encrypted=True)).extract(_pdf())

    def test_unreadable_is_corrupt_and_retryable(self) -> None:
        with pytest.raises(EmptyOrCorruptInputError, match="Invalid PDF format") as exc_info:
            PdfTextStrategy(FakePdfBackend(broken=True)).extract(_pdf())
        assert exc_info.value.retryable is True

    def test_reports_page_progress(self) -> None:
        backend = FakePdfBackend([FakePage(text="one"), FakePage(text="two")])
        received: list[tuple[int, int, str]] = []
        PdfTextStrategy(backend).extract(_pdf(), on_progress=lambda *a: received.append(a))
        assert [(done, total) for done, total, _ in received] == [(0, 2), (1, 2), (2, 2)]

    def test_stops_when_abandoned(self) -> None:
        backend = FakePdfBackend([FakePage(text="one")])
        event = threading.Event()
        event.set()
        with pytest.raises(ExtractionCancelledError):
            PdfTextStrategy(backend).extract(_pdf(), cancel_event=event)
        assert backend.opened[0].closed is True

    def test_reads_real_pdf(self, sample_pdf_bytes: bytes) -> None:
        text = PdfTextStrategy(PdfPlumberBackend()).extract(_pdf(sample_pdf_bytes))
        assert "Hello PDF World" in text

    def test_real_blank_pdf_has_no_text(self, empty_pdf_bytes: bytes) -> None:
        with pytest.raises(TextExtractionError):
            PdfTextStrategy(PdfPlumberBackend()).extract(_pdf(empty_pdf_bytes))

    def test_real_encrypted_pdf(self, encrypted_pdf_bytes: bytes) -> None:
        with pytest.raises(DocumentLockedError):
            PdfTextStrategy(PdfPlumberBackend()).extract(_pdf(encrypted_pdf_bytes))
