import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from resume_ingest.extraction.exceptions import ParserError


class Approach(str, Enum):
    TEXT_EXTRACTION = "text_extraction"
    OCR = "ocr"
    HYBRID = "hybrid"


class LayoutComplexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


@dataclass(frozen=True)
class Document:
    """An uploaded file as received from the caller. Never mutated."""

    name: str
    media_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def base_media_type(self) -> str:
        """Media type without parameters, lowercased."""
        return self.media_type.split(";")[0].strip().lower()

    @property
    def extension(self) -> str:
        suffix = Path(self.name).suffix
        return suffix[1:].lower() if suffix else ""

    @classmethod
    def from_path(cls, path: Path, media_type: str | None = None) -> "Document":
        """Read a file from disk, guessing the media type from its name if needed."""
        if media_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            media_type = guessed or "application/octet-stream"
        return cls(name=path.name, media_type=media_type, content=path.read_bytes())


@dataclass(frozen=True)
class PdfMetadata:
    title: str | None = None
    author: str | None = None
    creator: str | None = None
    producer: str | None = None
    encrypted: bool = False


@dataclass(frozen=True)
class PageAnalysis:
    """Layout findings for one sampled page."""

    page_number: int
    text_items: int
    text_density: float
    has_complex_layout: bool
    contains_images: bool = False
    contains_tables: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    is_password_protected: bool
    is_image_based: bool
    has_selectable_text: bool
    page_count: int
    text_density: float
    layout_complexity: LayoutComplexity
    recommended_approach: Approach
    warnings: tuple[str, ...] = ()
    hints: tuple[str, ...] = ()
    metadata: PdfMetadata | None = None
    pages: tuple[PageAnalysis, ...] = ()


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of one strategy attempt for a document."""

    strategy: str
    confidence: int
    duration_ms: float
    text_length: int = 0
    error: ParserError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ExtractionResult:
    text: str
    strategy: str
    confidence: int
    attempts: tuple[AttemptRecord, ...]
    warnings: tuple[str, ...]
    analysis: AnalysisResult
    processing_time_ms: float

    @property
    def fallbacks_used(self) -> list[str]:
        return [a.strategy for a in self.attempts if not a.succeeded]
