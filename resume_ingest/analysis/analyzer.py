"""Pre-extraction inspection of documents.

The analyzer samples the first pages of a PDF through the configured backend
and summarizes what it finds: whether a text layer exists, how dense and how
regular it is, and whether the pages carry images or tables. The result
steers strategy ranking; it never prevents an extraction attempt by itself
(password protection aside).
"""

import math
import statistics
from collections import defaultdict
from dataclasses import dataclass

from resume_ingest.extraction.models import (
    AnalysisResult,
    Approach,
    Document,
    LayoutComplexity,
    PageAnalysis,
    PdfMetadata,
)
from resume_ingest.logging.logger import Log
from resume_ingest.pdf.base import BasePdfBackend, BasePdfDocument, TextItem
from resume_ingest.pdf.exceptions import PdfEncryptedError

SAMPLE_PAGES = 5
COLUMN_ROUNDING = 10
ROW_BUCKET = 5
MAX_COLUMN_STARTS = 3
DENSE_ROW_LIMIT = 200
SCATTER_RATIO = 0.10
TABLE_MIN_ROWS = 3
TABLE_COLUMN_TOLERANCE = 20
IMAGE_BASED_PAGE_RATIO = 0.5
IMAGE_BASED_DENSITY = 0.001
LOW_DENSITY = 0.01
SELECTABLE_TEXT_ITEMS = 50
SIMPLE_RATIO = 0.3
MODERATE_RATIO = 0.7

_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "tif", "tiff"})
_TEXT_EXTENSIONS = frozenset({"docx", "doc", "txt", "rtf"})
_TEXT_MEDIA_MARKERS = ("word", "text/", "rtf")


def _row_buckets(items: list[TextItem]) -> dict[int, list[TextItem]]:
    rows: dict[int, list[TextItem]] = defaultdict(list)
    for item in items:
        rows[int(item.y // ROW_BUCKET)].append(item)
    return dict(rows)


def _detect_columns(items: list[TextItem]) -> bool:
    starts = {round(item.x / COLUMN_ROUNDING) * COLUMN_ROUNDING for item in items}
    return len(starts) > MAX_COLUMN_STARTS


def _detect_scatter(rows: dict[int, list[TextItem]], page_height: float) -> bool:
    """True when the spacing between consecutive rows is highly irregular."""
    if len(rows) < 3 or page_height <= 0:
        return False
    keys = sorted(rows)
    gaps = [(b - a) * ROW_BUCKET for a, b in zip(keys, keys[1:])]
    return math.sqrt(statistics.pvariance(gaps)) > page_height * SCATTER_RATIO


def _detect_tables(rows: dict[int, list[TextItem]]) -> bool:
    signatures = [
        sorted(item.x for item in rows[key]) for key in sorted(rows) if len(rows[key]) > 2
    ]
    if len(signatures) < TABLE_MIN_ROWS:
        return False
    reference = signatures[0]
    aligned = sum(
        1
        for signature in signatures
        if len(signature) == len(reference)
        and all(abs(a - b) <= TABLE_COLUMN_TOLERANCE for a, b in zip(signature, reference))
    )
    return aligned >= TABLE_MIN_ROWS


def pessimistic_result(reason: str) -> AnalysisResult:
    """Assume the worst about a document that could not be inspected."""
    return AnalysisResult(
        is_password_protected=False,
        is_image_based=True,
        has_selectable_text=False,
        page_count=0,
        text_density=0.0,
        layout_complexity=LayoutComplexity.COMPLEX,
        recommended_approach=Approach.OCR,
        warnings=(f"Document analysis failed: {reason}",),
    )


@dataclass(frozen=True)
class ProcessingEstimate:
    estimated_seconds: int
    breakdown: dict[str, int]
    factors: tuple[str, ...]


def estimate_processing_time(
    page_count: int, is_image_based: bool, complexity: LayoutComplexity
) -> ProcessingEstimate:
    """Rough wall-clock estimate for extracting a document, with a phase breakdown."""
    per_page = 0.5
    factors: list[str] = []
    if is_image_based:
        per_page *= 8
        factors.append("Image-based content requires OCR processing")
    if complexity is LayoutComplexity.MODERATE:
        per_page *= 1.5
        factors.append("Moderate layout complexity")
    elif complexity is LayoutComplexity.COMPLEX:
        per_page *= 2.5
        factors.append("Complex layout requires additional processing")
    # longer documents amortize setup cost
    per_page *= max(0.7, 1 - page_count / 100)

    seconds = math.ceil(page_count * per_page)
    breakdown = {
        "initialization": math.ceil(seconds * 0.05),
        "analysis": math.ceil(seconds * 0.1),
        "extraction": math.ceil(seconds * 0.7),
        "post_processing": math.ceil(seconds * 0.1),
        "validation": math.ceil(seconds * 0.05),
    }
    return ProcessingEstimate(seconds, breakdown, tuple(factors))


class DocumentAnalyzer:
    """Inspects documents before extraction and recommends an approach."""

    def __init__(self, pdf_backend: BasePdfBackend) -> None:
        self._backend = pdf_backend

    def analyze(self, document: Document) -> AnalysisResult:
        """Return an AnalysisResult. Never raises."""
        try:
            if document.base_media_type == "application/pdf" or document.extension == "pdf":
                result = self._analyze_pdf(document)
            else:
                result = self._analyze_other(document)
        except Exception as exc:
            Log.warning(f"Analysis of {document.name} failed, assuming image-based: {exc}")
            return pessimistic_result(str(exc) or type(exc).__name__)

        Log.info(
            f"Analyzed {document.name}: approach={result.recommended_approach.value}, "
            f"complexity={result.layout_complexity.value}, pages={result.page_count}"
        )
        return result

    def _analyze_pdf(self, document: Document) -> AnalysisResult:
        try:
            pdf = self._backend.open(document.content)
        except PdfEncryptedError:
            return AnalysisResult(
                is_password_protected=True,
                is_image_based=False,
                has_selectable_text=False,
                page_count=0,
                text_density=0.0,
                layout_complexity=LayoutComplexity.SIMPLE,
                recommended_approach=Approach.OCR,
                warnings=("Document is password protected and cannot be read",),
                hints=(
                    "Remove the password protection and upload the file again",
                    "Export an unlocked copy of the document",
                ),
                metadata=PdfMetadata(encrypted=True),
            )

        with pdf:
            metadata = pdf.metadata()
            page_count = pdf.page_count
            pages = tuple(
                self._analyze_page(pdf, page_number)
                for page_number in range(1, min(page_count, SAMPLE_PAGES) + 1)
            )
        return self._summarize(page_count, pages, metadata)

    def _analyze_page(self, pdf: BasePdfDocument, page_number: int) -> PageAnalysis:
        try:
            width, height = pdf.page_size(page_number)
            items = pdf.text_items(page_number)
            has_images = pdf.has_images(page_number)
        except Exception as exc:
            Log.warning(f"Could not analyze page {page_number}: {exc}")
            return PageAnalysis(
                page_number=page_number, text_items=0, text_density=0.0, has_complex_layout=True
            )

        area = width * height
        characters = sum(len(item.text) for item in items)
        rows = _row_buckets(items)
        is_complex = (
            _detect_columns(items)
            or _detect_scatter(rows, height)
            or len(rows) > DENSE_ROW_LIMIT
        )
        return PageAnalysis(
            page_number=page_number,
            text_items=len(items),
            text_density=characters / area if area > 0 else 0.0,
            has_complex_layout=is_complex,
            contains_images=has_images,
            contains_tables=_detect_tables(rows),
        )

    @staticmethod
    def _summarize(
        page_count: int, pages: tuple[PageAnalysis, ...], metadata: PdfMetadata
    ) -> AnalysisResult:
        sampled = len(pages)
        empty_ratio = sum(1 for p in pages if p.text_items == 0) / sampled if sampled else 1.0
        density = statistics.fmean(p.text_density for p in pages) if sampled else 0.0
        total_items = sum(p.text_items for p in pages)

        is_image_based = empty_ratio > IMAGE_BASED_PAGE_RATIO or density < IMAGE_BASED_DENSITY
        has_selectable_text = total_items > SELECTABLE_TEXT_ITEMS and not is_image_based

        complex_ratio = sum(1 for p in pages if p.has_complex_layout) / sampled if sampled else 1.0
        if complex_ratio < SIMPLE_RATIO:
            complexity = LayoutComplexity.SIMPLE
        elif complex_ratio < MODERATE_RATIO:
            complexity = LayoutComplexity.MODERATE
        else:
            complexity = LayoutComplexity.COMPLEX

        if is_image_based:
            approach = Approach.OCR
        elif has_selectable_text and complexity is LayoutComplexity.SIMPLE:
            approach = Approach.TEXT_EXTRACTION
        else:
            approach = Approach.HYBRID

        warnings: list[str] = []
        hints: list[str] = []
        if is_image_based:
            warnings.append("Document appears to be image-based (scanned); OCR will be required")
            hints.append("Upload a text-based PDF for faster and more accurate results")
        if complexity is not LayoutComplexity.SIMPLE:
            warnings.append(
                f"{complexity.value.capitalize()} layout detected "
                f"(multiple columns or irregular spacing)"
            )
            hints.append("Single-column layouts extract more reliably")
        if not is_image_based and density < LOW_DENSITY:
            warnings.append(f"Low text density ({density:.4f} characters per unit area)")
        image_pages = [p.page_number for p in pages if p.contains_images]
        if image_pages:
            hints.append(f"Images found on page(s) {image_pages}; text inside them needs OCR")
        table_pages = [p.page_number for p in pages if p.contains_tables]
        if table_pages:
            hints.append(
                f"Tables found on page(s) {table_pages}; table structure may not be preserved"
            )
        if metadata.encrypted:
            hints.append("Document is encrypted but opened without a password")

        return AnalysisResult(
            is_password_protected=False,
            is_image_based=is_image_based,
            has_selectable_text=has_selectable_text,
            page_count=page_count,
            text_density=density,
            layout_complexity=complexity,
            recommended_approach=approach,
            warnings=tuple(warnings),
            hints=tuple(hints),
            metadata=metadata,
            pages=pages,
        )

    @staticmethod
    def _analyze_other(document: Document) -> AnalysisResult:
        media_type = document.base_media_type
        if media_type.startswith("image/") or document.extension in _IMAGE_EXTENSIONS:
            return AnalysisResult(
                is_password_protected=False,
                is_image_based=True,
                has_selectable_text=False,
                page_count=1,
                text_density=0.0,
                layout_complexity=LayoutComplexity.SIMPLE,
                recommended_approach=Approach.OCR,
                hints=("Image files are read with OCR; a clear, high-resolution scan helps",),
            )
        if document.extension in _TEXT_EXTENSIONS or any(
            marker in media_type for marker in _TEXT_MEDIA_MARKERS
        ):
            return AnalysisResult(
                is_password_protected=False,
                is_image_based=False,
                has_selectable_text=True,
                page_count=1,
                text_density=0.0,
                layout_complexity=LayoutComplexity.SIMPLE,
                recommended_approach=Approach.TEXT_EXTRACTION,
            )
        return AnalysisResult(
            is_password_protected=False,
            is_image_based=False,
            has_selectable_text=False,
            page_count=0,
            text_density=0.0,
            layout_complexity=LayoutComplexity.SIMPLE,
            recommended_approach=Approach.HYBRID,
            warnings=(f"Unrecognized document type '{document.media_type}'",),
        )
