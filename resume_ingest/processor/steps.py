from resume_ingest.extraction.orchestrator import MultiStrategyParser
from resume_ingest.logging.logger import Log
from resume_ingest.processor.file_loader import FileLoader
from resume_ingest.processor.pipeline import PipelineContext, PipelineStep
from resume_ingest.progress.tracker import ProcessingProgress, ProgressSink
from resume_ingest.structuring.base import BaseStructurer
from resume_ingest.validation.validator import ResumeValidator


def log_progress(progress: ProcessingProgress) -> None:
    Log.debug(
        f"[{progress.phase.value}] {progress.overall_percent:.0f}% {progress.status}"
        + (f" (eta {progress.eta_ms}ms)" if progress.eta_ms else "")
    )


class LoadDocumentStep(PipelineStep):
    def __init__(self, file_loader: FileLoader) -> None:
        self._file_loader = file_loader

    def run(self, context: PipelineContext) -> PipelineContext:
        context.document = self._file_loader.load(context.path, context.media_type)
        Log.info(
            f"Loaded {context.document.size} bytes from {context.path.name} "
            f"({context.document.media_type})"
        )
        return context


class ExtractTextStep(PipelineStep):
    def __init__(
        self, parser: MultiStrategyParser, progress_sink: ProgressSink | None = log_progress
    ) -> None:
        self._parser = parser
        self._progress_sink = progress_sink

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.document is None:
            raise ValueError("PipelineContext.document must be set before text extraction")
        context.extraction = self._parser.parse(context.document, on_progress=self._progress_sink)
        context.warnings.extend(context.extraction.warnings)
        return context


class StructureResumeStep(PipelineStep):
    def __init__(self, structurer: BaseStructurer) -> None:
        self._structurer = structurer

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.extraction is None:
            raise ValueError("PipelineContext.extraction must be set before structuring")
        context.resume = self._structurer.structure(context.extraction.text)
        return context


class ValidateResumeStep(PipelineStep):
    def __init__(self, validator: ResumeValidator) -> None:
        self._validator = validator

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.resume is None:
            raise ValueError("PipelineContext.resume must be set before validation")
        context.validation_results = self._validator.validate(context.resume)
        context.warnings.extend(ResumeValidator.warnings(context.validation_results))
        return context
