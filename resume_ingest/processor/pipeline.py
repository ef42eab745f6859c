from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from resume_ingest.extraction.models import Document, ExtractionResult
from resume_ingest.structuring.models import ResumeData
from resume_ingest.validation.rules import ValidationResult


@dataclass(slots=True)
class PipelineContext:
    path: Path
    media_type: str | None = None
    document: Document | None = None
    extraction: ExtractionResult | None = None
    resume: ResumeData | None = None
    validation_results: list[ValidationResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error_message: str = ""


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
