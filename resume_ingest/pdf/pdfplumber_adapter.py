import io

import pdfplumber
from PIL import Image

from resume_ingest.extraction.models import PdfMetadata
from resume_ingest.pdf.base import BasePdfBackend, BasePdfDocument, TextItem
from resume_ingest.pdf.exceptions import PdfBackendError, PdfEncryptedError

RUN_GAP_TOLERANCE = 3


def is_password_error(exc: BaseException) -> bool:
    """Return True if exc (or anything it wraps) signals a missing password."""
    seen: set[int] = set()
    stack: list[object] = [exc]
    while stack:
        current = stack.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        if "password" in type(current).__name__.lower() or "password" in str(current).lower():
            return True
        stack.extend([current.__cause__, current.__context__, *current.args])
    return False


def _meta_str(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).strip()
    return text or None


class PdfPlumberDocument(BasePdfDocument):
    def __init__(self, pdf: pdfplumber.PDF) -> None:
        self._pdf = pdf

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def metadata(self) -> PdfMetadata:
        info = self._pdf.metadata or {}
        encryption = getattr(self._pdf.doc, "encryption", None)
        return PdfMetadata(
            title=_meta_str(info.get("Title")),
            author=_meta_str(info.get("Author")),
            creator=_meta_str(info.get("Creator")),
            producer=_meta_str(info.get("Producer")),
            encrypted=encryption is not None,
        )

    def page_size(self, page_number: int) -> tuple[float, float]:
        page = self._page(page_number)
        return float(page.width), float(page.height)

    def text_items(self, page_number: int) -> list[TextItem]:
        # blanks stay inside a run; wider gaps (columns, table cells) split it
        runs = self._page(page_number).extract_words(
            keep_blank_chars=True, x_tolerance=RUN_GAP_TOLERANCE
        )
        return [
            TextItem(
                text=run["text"].strip(),
                x=float(run["x0"]),
                y=float(run["top"]),
                width=float(run["x1"] - run["x0"]),
                height=float(run["bottom"] - run["top"]),
            )
            for run in runs
            if run["text"].strip()
        ]

    def page_text(self, page_number: int) -> str:
        return self._page(page_number).extract_text() or ""

    def has_images(self, page_number: int) -> bool:
        return bool(self._page(page_number).images)

    def rasterize(self, page_number: int, dpi: int) -> Image.Image:
        page_image = self._page(page_number).to_image(resolution=dpi)
        return page_image.original.convert("RGB")

    def close(self) -> None:
        self._pdf.close()

    def _page(self, page_number: int) -> "pdfplumber.page.Page":
        return self._pdf.pages[page_number - 1]


class PdfPlumberBackend(BasePdfBackend):
    """Reads PDF text layers and renders pages using pdfplumber."""

    name = "pdfplumber"

    def open(self, pdf_bytes: bytes) -> BasePdfDocument:
        try:
            pdf = pdfplumber.open(io.BytesIO(pdf_bytes))
        except Exception as exc:
            if is_password_error(exc):
                raise PdfEncryptedError(f"PDF is password protected: {exc}") from exc
            raise PdfBackendError(f"pdfplumber could not open PDF: {exc}") from exc
        return PdfPlumberDocument(pdf)
