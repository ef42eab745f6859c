import io
import re
import threading
from collections.abc import Iterator
from dataclasses import replace

from PIL import Image, ImageSequence, UnidentifiedImageError

from resume_ingest.config.presets import OcrSettings
from resume_ingest.extraction.exceptions import (
    DocumentLockedError,
    EmptyOrCorruptInputError,
    OcrError,
)
from resume_ingest.extraction.models import Approach, Document
from resume_ingest.extraction.strategies.base import (
    BaseStrategy,
    ProgressCallback,
    WarningCallback,
)
from resume_ingest.logging.logger import Log
from resume_ingest.ocr.base import BaseOcrEngine, OcrOutput
from resume_ingest.ocr.exceptions import OcrEngineError, OcrEngineUnavailableError
from resume_ingest.pdf.base import BasePdfBackend, BasePdfDocument
from resume_ingest.pdf.exceptions import PdfBackendError, PdfEncryptedError

IMAGE_MEDIA_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/tiff",
    }
)
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "tif", "tiff"})

AUTO_PSM = 3
UNIFORM_BLOCK_PSM = 6
LOW_CONFIDENCE = 40.0
LOW_RESOLUTION_DPI = 150
# a letter-size page scanned at LOW_RESOLUTION_DPI
LOW_RESOLUTION_WIDTH = 1275
# a pass this long and this confident makes further passes pointless
GOOD_ENOUGH_LENGTH = 1000
GOOD_ENOUGH_CONFIDENCE = 85.0

_RESUME_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\b(experience|education|skills|contact|summary|objective)\b",
        r"\b(email|phone|address|linkedin)\b",
        r"\b(work|job|employment|career)\b",
        r"\b(university|college|degree|bachelor|master)\b",
    )
)
_YEAR_RE = re.compile(r"\d{4}")
_EMAIL_RE = re.compile(r"@.*\.")


def score_output(output: OcrOutput) -> float:
    """Rank an OCR pass: confidence, length and how much it reads like a resume."""
    text = output.text
    score = output.confidence + min(len(text) / 20, 30)
    if len(text) < 100:
        score -= 30
    score += 10 * sum(1 for pattern in _RESUME_PATTERNS if pattern.search(text))
    if text.count("\n") >= 2:
        score += 5
    if _YEAR_RE.search(text):
        score += 5
    if _EMAIL_RE.search(text):
        score += 10
    return score


class OcrStrategy(BaseStrategy):
    """Recognizes text in images and in rasterized PDF pages.

    Every page is read with more than one page-segmentation mode and the
    best-scoring reading is kept.
    """

    name = "ocr"
    priority = 50
    approach = Approach.OCR
    supported_media_types = IMAGE_MEDIA_TYPES | {"application/pdf"}
    expected_extensions = IMAGE_EXTENSIONS | {"pdf"}

    def __init__(
        self,
        engine: BaseOcrEngine,
        pdf_backend: BasePdfBackend,
        settings: OcrSettings | None = None,
    ) -> None:
        self._engine = engine
        self._pdf_backend = pdf_backend
        self._settings = settings or OcrSettings()

    @property
    def page_seg_modes(self) -> tuple[int, ...]:
        """Configured mode first, then the automatic and uniform-block modes."""
        return tuple(dict.fromkeys((self._settings.page_seg_mode, AUTO_PSM, UNIFORM_BLOCK_PSM)))

    def _extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> str:
        if document.base_media_type == "application/pdf" or document.extension == "pdf":
            pages = self._pdf_pages(document, on_warning)
        else:
            pages = self._image_frames(document, on_warning)
        if document.size > self.LARGE_FILE_BYTES:
            self.warn(on_warning, f"Large file ({document.size} bytes); OCR may be slow")

        texts: list[str] = []
        confidences: list[float] = []
        for page_number, total, image in pages:
            self.check_cancelled(cancel_event)
            status = f"Running OCR on page {page_number} of {total}"
            self.report(on_progress, page_number - 1, total, status)
            output = self._recognize_page(image, page_number, cancel_event, on_warning)
            if output.text.strip():
                texts.append(output.text)
                confidences.append(output.confidence)
            self.report(on_progress, page_number, total, f"OCR finished page {page_number}")

        if confidences:
            mean_confidence = sum(confidences) / len(confidences)
            Log.info(
                f"OCR of {document.name}: {len(texts)} pages, confidence {mean_confidence:.1f}"
            )
            if mean_confidence < LOW_CONFIDENCE:
                self.warn(
                    on_warning,
                    f"Low OCR confidence ({mean_confidence:.1f}) for {document.name}; "
                    f"results may be unreliable",
                )
        return "\n".join(texts)

    def _recognize_page(
        self,
        image: Image.Image,
        page_number: int,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> OcrOutput:
        readings: list[OcrOutput] = []
        last_error: OcrEngineError | None = None
        for psm in self.page_seg_modes:
            self.check_cancelled(cancel_event)
            try:
                output = self._engine.recognize(image, replace(self._settings, page_seg_mode=psm))
            except OcrEngineUnavailableError as exc:
                raise OcrError(
                    f"OCR engine unavailable: {exc}",
                    retryable=False,
                    context={"page": page_number},
                ) from exc
            except OcrEngineError as exc:
                last_error = exc
                self.warn(
                    on_warning,
                    f"OCR pass with page segmentation mode {psm} failed on page "
                    f"{page_number}: {exc}",
                )
                continue
            readings.append(output)
            if (
                len(output.text) > GOOD_ENOUGH_LENGTH
                and output.confidence > GOOD_ENOUGH_CONFIDENCE
            ):
                break

        if not readings:
            raise OcrError(
                f"OCR recognition failed on page {page_number}: {last_error}",
                context={"page": page_number},
            ) from last_error
        non_empty = [r for r in readings if r.text.strip()]
        if not non_empty:
            return readings[0]
        best = max(non_empty, key=score_output)
        Log.debug(
            f"OCR page {page_number}: kept {len(best.text)} characters "
            f"at confidence {best.confidence:.1f} from {len(readings)} pass(es)"
        )
        return best

    def _pdf_pages(
        self, document: Document, on_warning: WarningCallback | None
    ) -> Iterator[tuple[int, int, Image.Image]]:
        try:
            pdf = self._pdf_backend.open(document.content)
        except PdfEncryptedError as exc:
            raise DocumentLockedError(
                f"PDF '{document.name}' is password protected and cannot be rendered"
            ) from exc
        except PdfBackendError as exc:
            raise EmptyOrCorruptInputError(f"Invalid PDF format: {exc}", retryable=True) from exc
        if self._settings.dpi < LOW_RESOLUTION_DPI:
            self.warn(
                on_warning,
                f"Pages are rendered at {self._settings.dpi} DPI; OCR accuracy may be reduced",
            )
        return self._render(pdf)

    def _render(self, pdf: BasePdfDocument) -> Iterator[tuple[int, int, Image.Image]]:
        with pdf:
            total = pdf.page_count
            for page_number in range(1, total + 1):
                yield page_number, total, pdf.rasterize(page_number, self._settings.dpi)

    def _image_frames(
        self, document: Document, on_warning: WarningCallback | None
    ) -> Iterator[tuple[int, int, Image.Image]]:
        try:
            image = Image.open(io.BytesIO(document.content))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise EmptyOrCorruptInputError(
                f"Image '{document.name}' is corrupt or in an unrecognized format: {exc}",
                retryable=False,
            ) from exc
        if _is_low_resolution(image):
            self.warn(on_warning, "Low resolution image detected; OCR accuracy may be reduced")
        total = getattr(image, "n_frames", 1)
        return (
            (index, total, frame.convert("RGB"))
            for index, frame in enumerate(ImageSequence.Iterator(image), start=1)
        )


def _is_low_resolution(image: Image.Image) -> bool:
    dpi = image.info.get("dpi")
    if dpi:
        return min(float(d) for d in dpi) < LOW_RESOLUTION_DPI
    return image.width < LOW_RESOLUTION_WIDTH
