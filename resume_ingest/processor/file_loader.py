from pathlib import Path

from resume_ingest.extraction.models import Document
from resume_ingest.processor.exceptions import FileReadError, FileTooLargeError


class FileLoader:
    """Reads an uploaded file from disk into a Document."""

    DEFAULT_MAX_SIZE_MB = 50

    def __init__(self, max_size_mb: int = DEFAULT_MAX_SIZE_MB) -> None:
        self._max_bytes = max_size_mb * 1024 * 1024

    def load(self, path: Path, media_type: str | None = None) -> Document:
        """Read a file, guessing its media type from the name when none is given.

        Raises:
            FileNotFoundError: if nothing exists at path.
            FileTooLargeError: if the file is larger than the configured limit.
            FileReadError: if the file exists but cannot be read.
        """
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        size = path.stat().st_size
        if size > self._max_bytes:
            raise FileTooLargeError(
                f"File {path.name} is {size} bytes, limit is {self._max_bytes} bytes"
            )
        try:
            return Document.from_path(path, media_type)
        except OSError as exc:
            raise FileReadError(f"Failed to read {path}: {exc}") from exc
