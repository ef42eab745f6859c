from pathlib import Path

from resume_ingest.config.presets import ParserConfig
from resume_ingest.config.settings import Settings
from resume_ingest.extraction.orchestrator import build_parser
from resume_ingest.logging.logger import Log
from resume_ingest.ocr.tesseract_adapter import TesseractEngine
from resume_ingest.pdf.factory import PdfBackendFactory
from resume_ingest.processor.file_loader import FileLoader
from resume_ingest.processor.pipeline import PipelineContext, PipelineStep
from resume_ingest.processor.steps import (
    ExtractTextStep,
    LoadDocumentStep,
    StructureResumeStep,
    ValidateResumeStep,
)
from resume_ingest.structuring.factory import StructurerFactory
from resume_ingest.validation.validator import ResumeValidator


class Processor:
    """Runs a resume file through the pipeline steps in order.

    Pipeline: load -> extract text -> structure -> validate.
    """

    def __init__(self, steps: list[PipelineStep]) -> None:
        self._steps = list(steps)

    @property
    def steps(self) -> list[PipelineStep]:
        return list(self._steps)

    def process(self, path: Path, media_type: str | None = None) -> PipelineContext:
        """Run every step for one file and return the filled context.

        Raises:
            Exception: whatever the failing step raised, after logging it.
        """
        Log.info(f"Processing {path}")
        context = PipelineContext(path=path, media_type=media_type)
        for step in self._steps:
            step_name = type(step).__name__
            Log.debug(f"Running {step_name} for {path.name}")
            try:
                context = step.run(context)
            except Exception as exc:
                context.error_message = str(exc)
                Log.error(f"{step_name} failed for {path.name}: {exc}")
                raise
        Log.info(f"Finished {path.name} with {len(context.warnings)} warning(s)")
        return context


def build_processor(settings: Settings) -> Processor:
    """Build a Processor with all required adapters."""
    config = ParserConfig.from_settings(settings)
    pdf_backend = PdfBackendFactory.create(settings)
    ocr_engine = TesseractEngine(settings.tesseract_cmd)
    parser = build_parser(config, pdf_backend, ocr_engine)
    return Processor(
        steps=[
            LoadDocumentStep(FileLoader(settings.max_file_size_mb)),
            ExtractTextStep(parser),
            StructureResumeStep(StructurerFactory.create(settings)),
            ValidateResumeStep(ResumeValidator(config.validation_rules)),
        ]
    )
