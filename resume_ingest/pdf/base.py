from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType

from PIL import Image

from resume_ingest.extraction.models import PdfMetadata


@dataclass(frozen=True)
class TextItem:
    """A positioned run of text on a page (top-left origin, PDF units)."""

    text: str
    x: float
    y: float
    width: float
    height: float


class BasePdfDocument(ABC):
    """An opened PDF. Pages are numbered from 1."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages in the document."""

    @abstractmethod
    def metadata(self) -> PdfMetadata:
        """Document information dictionary and encryption state."""

    @abstractmethod
    def page_size(self, page_number: int) -> tuple[float, float]:
        """Return (width, height) of the page."""

    @abstractmethod
    def text_items(self, page_number: int) -> list[TextItem]:
        """Return the positioned text runs of a page."""

    @abstractmethod
    def page_text(self, page_number: int) -> str:
        """Return the page text in reading order."""

    @abstractmethod
    def has_images(self, page_number: int) -> bool:
        """Return True if the page embeds raster images."""

    @abstractmethod
    def rasterize(self, page_number: int, dpi: int) -> Image.Image:
        """Render the page to an RGB image."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying document."""

    def __enter__(self) -> "BasePdfDocument":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class BasePdfBackend(ABC):
    """Contract for all PDF rendering / text-layer adapters."""

    name: str = "base"

    @abstractmethod
    def open(self, pdf_bytes: bytes) -> BasePdfDocument:
        """Open PDF bytes.

        Raises:
            PdfEncryptedError: if the document requires a password.
            PdfBackendError: if the document cannot be opened for any other reason.
        """
