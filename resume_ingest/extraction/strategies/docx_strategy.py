import io
import threading
import zipfile

import docx
from docx.opc.exceptions import PackageNotFoundError

from resume_ingest.extraction.exceptions import EmptyOrCorruptInputError
from resume_ingest.extraction.models import Approach, Document
from resume_ingest.extraction.strategies.base import (
    BaseStrategy,
    ProgressCallback,
    WarningCallback,
)

WORD_MEDIA_TYPES = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
    }
)


class DocxStrategy(BaseStrategy):
    """Reads paragraphs and table cells from word-processor documents."""

    name = "docx"
    priority = 85
    approach = Approach.TEXT_EXTRACTION
    supported_media_types = WORD_MEDIA_TYPES
    expected_extensions = frozenset({"docx", "doc"})

    def _extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> str:
        self.report(on_progress, 0, 1, "Opening word-processor document")
        try:
            word_doc = docx.Document(io.BytesIO(document.content))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as exc:
            raise EmptyOrCorruptInputError(
                f"Document '{document.name}' has a corrupt zip format: {exc}",
                retryable=True,
            ) from exc

        self.check_cancelled(cancel_event)
        parts = [p.text for p in word_doc.paragraphs if p.text.strip()]
        for table in word_doc.tables:
            for row in table.rows:
                cells: list[str] = []
                for cell in row.cells:
                    # merged cells repeat the same text across the span
                    text = cell.text.strip()
                    if text and (not cells or cells[-1] != text):
                        cells.append(text)
                if cells:
                    parts.append("\t".join(cells))

        self.report(on_progress, 1, 1, "Document text read")
        return "\n".join(parts)
