"""JSON-ready summaries of pipeline runs."""

from dataclasses import asdict
from pathlib import Path
from typing import Any

from resume_ingest.extraction.exceptions import DocumentParsingError, ParserError
from resume_ingest.extraction.models import AnalysisResult, AttemptRecord
from resume_ingest.processor.pipeline import PipelineContext


def _attempt(record: AttemptRecord) -> dict[str, Any]:
    return {
        "strategy": record.strategy,
        "confidence": record.confidence,
        "duration_ms": round(record.duration_ms, 1),
        "text_length": record.text_length,
        "error": record.error.to_dict() if record.error is not None else None,
    }


def _analysis(analysis: AnalysisResult) -> dict[str, Any]:
    return {
        "page_count": analysis.page_count,
        "is_image_based": analysis.is_image_based,
        "has_selectable_text": analysis.has_selectable_text,
        "layout_complexity": analysis.layout_complexity.value,
        "recommended_approach": analysis.recommended_approach.value,
        "hints": list(analysis.hints),
    }


def build_report(context: PipelineContext) -> dict[str, Any]:
    extraction = context.extraction
    return {
        "file": context.path.name,
        "status": "ok",
        "strategy": extraction.strategy if extraction else None,
        "confidence": extraction.confidence if extraction else None,
        "processing_time_ms": round(extraction.processing_time_ms, 1) if extraction else None,
        "attempts": [_attempt(a) for a in extraction.attempts] if extraction else [],
        "analysis": _analysis(extraction.analysis) if extraction else None,
        "warnings": list(context.warnings),
        "validation": [r.to_dict() for r in context.validation_results],
        "resume": asdict(context.resume) if context.resume is not None else None,
    }


def build_failure_report(path: Path, exc: Exception) -> dict[str, Any]:
    report: dict[str, Any] = {"file": path.name, "status": "failed", "error": str(exc)}
    if isinstance(exc, DocumentParsingError):
        report["errors"] = [e.to_dict() for e in exc.errors]
        report["user_message"] = exc.errors[-1].user_message
    elif isinstance(exc, ParserError):
        report["errors"] = [exc.to_dict()]
        report["user_message"] = exc.user_message
    return report
