import threading
import time

from resume_ingest.analysis.analyzer import DocumentAnalyzer, estimate_processing_time
from resume_ingest.config.presets import DEFAULT_CONFIG, ParserConfig
from resume_ingest.extraction.exceptions import (
    DocumentLockedError,
    DocumentParsingError,
    ExtractionCancelledError,
    ParserError,
    Severity,
    UnsupportedTypeError,
)
from resume_ingest.extraction.models import (
    AnalysisResult,
    Approach,
    AttemptRecord,
    Document,
    ExtractionResult,
)
from resume_ingest.extraction.registry import (
    RankedStrategy,
    StrategyRegistry,
    build_default_registry,
)
from resume_ingest.logging.logger import Log
from resume_ingest.ocr.base import BaseOcrEngine
from resume_ingest.ocr.tesseract_adapter import TesseractEngine
from resume_ingest.pdf.base import BasePdfBackend
from resume_ingest.pdf.pdfplumber_adapter import PdfPlumberBackend
from resume_ingest.progress.tracker import ProcessingPhase, ProgressSink, ProgressTracker


class MultiStrategyParser:
    """Selects, runs and falls back across extraction strategies for one document at a time."""

    def __init__(
        self,
        registry: StrategyRegistry,
        analyzer: DocumentAnalyzer,
        config: ParserConfig = DEFAULT_CONFIG,
    ) -> None:
        self._registry = registry
        self._analyzer = analyzer
        self._config = config

    @property
    def config(self) -> ParserConfig:
        return self._config

    def parse(
        self,
        document: Document,
        on_progress: ProgressSink | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ExtractionResult:
        """Extract text from a document, trying strategies until one succeeds.

        Raises:
            DocumentParsingError: when every available strategy failed, the
                retry budget ran out, or the document cannot be read at all.
        """
        tracker = ProgressTracker(sink=on_progress)
        started = time.monotonic()
        try:
            result = self._parse(document, tracker, cancel_event, started)
        except DocumentParsingError as exc:
            Log.error(f"Extraction failed for {document.name}: {exc}")
            raise
        finally:
            tracker.close()

        Log.info(
            f"Extracted {len(result.text)} characters from {document.name} "
            f"with {result.strategy} after {len(result.attempts)} attempt(s) "
            f"in {result.processing_time_ms:.0f}ms"
        )
        return result

    def _parse(
        self,
        document: Document,
        tracker: ProgressTracker,
        cancel_event: threading.Event | None,
        started: float,
    ) -> ExtractionResult:
        tracker.start_phase(ProcessingPhase.INITIALIZATION, f"Preparing {document.name}")
        self._raise_if_cancelled(document, cancel_event)

        tracker.start_phase(ProcessingPhase.ANALYSIS)
        analysis = self._analyzer.analyze(document)
        tracker.set_total_pages(analysis.page_count)
        for warning in analysis.warnings:
            tracker.add_warning(warning)
        estimate = estimate_processing_time(
            analysis.page_count, analysis.is_image_based, analysis.layout_complexity
        )
        Log.info(
            f"Estimated processing time for {document.name}: ~{estimate.estimated_seconds}s"
        )
        tracker.complete_phase("Analysis complete")

        ranked = self._rank(document, analysis)

        attempts: list[AttemptRecord] = []
        errors: list[ParserError] = []
        warnings: list[str] = list(analysis.warnings)

        def record_warning(message: str) -> None:
            warnings.append(message)
            tracker.add_warning(message)

        attempted: set[str] = set()
        candidate: RankedStrategy | None = ranked[0]

        while candidate is not None and len(attempts) < self._config.max_retries:
            if cancel_event is not None and cancel_event.is_set():
                errors.append(self._cancelled(document))
                break

            attempted.add(candidate.name)
            strategy = candidate.strategy
            phase = (
                ProcessingPhase.OCR_PROCESSING
                if strategy.approach is Approach.OCR
                else ProcessingPhase.TEXT_EXTRACTION
            )
            tracker.start_phase(
                phase, f"Trying {candidate.name} (confidence {candidate.confidence})"
            )
            Log.info(
                f"Attempt {len(attempts) + 1}/{self._config.max_retries} on {document.name}: "
                f"{candidate.name} (confidence {candidate.confidence})"
            )

            attempt_started = time.monotonic()
            try:
                text = strategy.extract_with_timeout(
                    document,
                    self._config.timeout_ms,
                    on_progress=tracker.update_work,
                    cancel_event=cancel_event,
                    on_warning=record_warning,
                )
                tracker.start_phase(ProcessingPhase.POST_PROCESSING)
                text_warnings = strategy.validate_extracted_text(
                    text, self._config.min_text_length
                )
            except ParserError as exc:
                error = exc.with_context(document=document.name, strategy=candidate.name)
            else:
                attempts.append(
                    AttemptRecord(
                        strategy=candidate.name,
                        confidence=candidate.confidence,
                        duration_ms=_elapsed_ms(attempt_started),
                        text_length=len(text),
                    )
                )
                for warning in text_warnings:
                    tracker.add_warning(warning)
                warnings.extend(text_warnings)
                tracker.start_phase(ProcessingPhase.VALIDATION)
                tracker.complete(f"Extracted text with {candidate.name}")
                return ExtractionResult(
                    text=text,
                    strategy=candidate.name,
                    confidence=candidate.confidence,
                    attempts=tuple(attempts),
                    warnings=tuple(warnings),
                    analysis=analysis,
                    processing_time_ms=_elapsed_ms(started),
                )

            attempts.append(
                AttemptRecord(
                    strategy=candidate.name,
                    confidence=candidate.confidence,
                    duration_ms=_elapsed_ms(attempt_started),
                    error=error,
                )
            )
            errors.append(error)
            message = f"{candidate.name} failed ({error.code}): {error.message}"
            tracker.add_warning(message)
            warnings.append(message)
            Log.warning(f"{document.name}: {message}")

            if error.severity is Severity.FATAL:
                break
            candidate = self._next_candidate(error, document, ranked, attempted)

        if len(attempts) >= self._config.max_retries and candidate is not None:
            Log.warning(
                f"Giving up on {document.name} after {len(attempts)} attempt(s) "
                f"(max_retries={self._config.max_retries})"
            )
        raise DocumentParsingError(document.name, errors)

    def _rank(self, document: Document, analysis: AnalysisResult) -> list[RankedStrategy]:
        allowed: frozenset[Approach] | None = None
        if analysis.is_password_protected:
            if not self._config.ocr_locked_documents:
                raise DocumentParsingError(document.name, [self._locked(document)])
            allowed = frozenset({Approach.OCR})

        ranked = self._registry.rank(document, analysis, self._config.enable_ocr, allowed)
        if ranked:
            Log.debug(
                f"Ranked strategies for {document.name}: "
                + ", ".join(f"{r.name}={r.confidence}" for r in ranked)
            )
            return ranked
        if analysis.is_password_protected:
            raise DocumentParsingError(document.name, [self._locked(document)])
        raise DocumentParsingError(
            document.name,
            [
                UnsupportedTypeError(
                    f"No strategy can handle '{document.name}' ({document.media_type})",
                    context={"document": document.name, "media_type": document.media_type},
                )
            ],
        )

    def _next_candidate(
        self,
        error: ParserError,
        document: Document,
        ranked: list[RankedStrategy],
        attempted: set[str],
    ) -> RankedStrategy | None:
        by_name = {r.name: r for r in ranked}
        target = self._registry.select_fallback(error, document, attempted, set(by_name))
        if target is not None:
            return by_name[target]
        return next((r for r in ranked if r.name not in attempted), None)

    def _raise_if_cancelled(
        self, document: Document, cancel_event: threading.Event | None
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise DocumentParsingError(document.name, [self._cancelled(document)])

    @staticmethod
    def _cancelled(document: Document) -> ExtractionCancelledError:
        return ExtractionCancelledError(
            f"Extraction of '{document.name}' was cancelled", context={"document": document.name}
        )

    @staticmethod
    def _locked(document: Document) -> DocumentLockedError:
        return DocumentLockedError(
            f"'{document.name}' is password protected", context={"document": document.name}
        )


def _elapsed_ms(since: float) -> float:
    return (time.monotonic() - since) * 1000


def build_parser(
    config: ParserConfig = DEFAULT_CONFIG,
    pdf_backend: BasePdfBackend | None = None,
    ocr_engine: BaseOcrEngine | None = None,
) -> MultiStrategyParser:
    """Wire the default strategies, fallback rules and analyzer together."""
    pdf_backend = pdf_backend or PdfPlumberBackend()
    ocr_engine = ocr_engine or TesseractEngine()
    registry = build_default_registry(pdf_backend, ocr_engine, config)
    for issue in registry.validate_configuration():
        Log.warning(f"Strategy registry: {issue}")
    return MultiStrategyParser(registry, DocumentAnalyzer(pdf_backend), config)


def parse_document(
    document: Document,
    config: ParserConfig = DEFAULT_CONFIG,
    on_progress: ProgressSink | None = None,
    cancel_event: threading.Event | None = None,
    pdf_backend: BasePdfBackend | None = None,
    ocr_engine: BaseOcrEngine | None = None,
) -> ExtractionResult:
    parser = build_parser(config, pdf_backend, ocr_engine)
    return parser.parse(document, on_progress=on_progress, cancel_event=cancel_event)
