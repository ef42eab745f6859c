import pymupdf
from PIL import Image

from resume_ingest.extraction.models import PdfMetadata
from resume_ingest.pdf.base import BasePdfBackend, BasePdfDocument, TextItem
from resume_ingest.pdf.exceptions import PdfBackendError, PdfEncryptedError


class PyMuPdfDocument(BasePdfDocument):
    def __init__(self, doc: pymupdf.Document) -> None:
        self._doc = doc

    @property
    def page_count(self) -> int:
        return int(self._doc.page_count)

    def metadata(self) -> PdfMetadata:
        info = self._doc.metadata or {}
        return PdfMetadata(
            title=info.get("title") or None,
            author=info.get("author") or None,
            creator=info.get("creator") or None,
            producer=info.get("producer") or None,
            encrypted=bool(self._doc.is_encrypted or info.get("encryption")),
        )

    def page_size(self, page_number: int) -> tuple[float, float]:
        rect = self._doc[page_number - 1].rect
        return float(rect.width), float(rect.height)

    def text_items(self, page_number: int) -> list[TextItem]:
        layout = self._doc[page_number - 1].get_text("dict")
        items: list[TextItem] = []
        for block in layout.get("blocks", []):
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    text = span.get("text", "")
                    if not text.strip():
                        continue
                    x0, y0, x1, y1 = span["bbox"]
                    items.append(
                        TextItem(text=text, x=x0, y=y0, width=x1 - x0, height=y1 - y0)
                    )
        return items

    def page_text(self, page_number: int) -> str:
        return self._doc[page_number - 1].get_text()

    def has_images(self, page_number: int) -> bool:
        return bool(self._doc[page_number - 1].get_images())

    def rasterize(self, page_number: int, dpi: int) -> Image.Image:
        pix = self._doc[page_number - 1].get_pixmap(dpi=dpi, alpha=False)
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)

    def close(self) -> None:
        self._doc.close()


class PyMuPdfBackend(BasePdfBackend):
    """Reads PDF text layers and renders pages using PyMuPDF."""

    name = "pymupdf"

    def open(self, pdf_bytes: bytes) -> BasePdfDocument:
        try:
            doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise PdfBackendError(f"pymupdf could not open PDF: {exc}") from exc
        if doc.needs_pass:
            doc.close()
            raise PdfEncryptedError("PDF is password protected")
        return PyMuPdfDocument(doc)
