"""Command-line entry point: extract, structure and validate resume files."""

import json
import sys
from pathlib import Path
from typing import Any

import typer

from resume_ingest.config.settings import Settings
from resume_ingest.logging.logger import Log
from resume_ingest.processor.processor import build_processor
from resume_ingest.processor.report import build_failure_report, build_report

app = typer.Typer(
    name="resume-ingest",
    help="Extract text from resume documents and structure it into resume data.",
    add_completion=False,
)


@app.command()
def ingest(
    files: list[Path] = typer.Argument(..., help="Resume files to process"),
    media_type: str | None = typer.Option(
        None, "--media-type", help="Declared media type; guessed from the file name if omitted"
    ),
    preset: str | None = typer.Option(
        None, "--preset", help="Parser preset: fast, comprehensive, ocr_focused, production"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the JSON report to this file instead of stdout"
    ),
) -> None:
    """Process each file and print one JSON report per file."""
    settings = Settings()
    if preset:
        settings = settings.model_copy(update={"parser_preset": preset})
    # stdout carries the JSON report
    Log.configure(settings.log_level, stream=sys.stderr)
    processor = build_processor(settings)

    reports: list[dict[str, Any]] = []
    failed = 0
    for path in files:
        try:
            context = processor.process(path, media_type)
        except Exception as exc:
            failed += 1
            reports.append(build_failure_report(path, exc))
            continue
        reports.append(build_report(context))

    payload = json.dumps(reports, indent=2, ensure_ascii=False)
    if output is not None:
        output.write_text(payload, encoding="utf-8")
        Log.info(f"Report written to {output}")
    else:
        typer.echo(payload)

    if failed:
        Log.error(f"{failed} of {len(files)} file(s) failed")
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
