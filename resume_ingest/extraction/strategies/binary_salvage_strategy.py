import html
import io
import re
import threading
import zipfile
import zlib

from resume_ingest.extraction.exceptions import TextExtractionError
from resume_ingest.extraction.models import Approach, Document
from resume_ingest.extraction.strategies.base import (
    BaseStrategy,
    ProgressCallback,
    WarningCallback,
)
from resume_ingest.extraction.strategies.docx_strategy import WORD_MEDIA_TYPES
from resume_ingest.logging.logger import Log

_ASCII_RUN_RE = re.compile(rb"[\x20-\x7e]{4,}")
_UTF16_RUN_RE = re.compile(rb"(?:[\x20-\x7e]\x00){4,}")
_WORDLIKE_RE = re.compile(r"[A-Za-z]{2,}")
_XML_PARAGRAPH_END_RE = re.compile(r"</w:p>")
_XML_TAB_RE = re.compile(r"<w:(?:tab|br)\s*/>")
_XML_TAG_RE = re.compile(r"<[^>]+>")


def text_from_document_xml(xml: str) -> str:
    """Flatten WordprocessingML body XML into plain text."""
    text = _XML_PARAGRAPH_END_RE.sub("\n", xml)
    text = _XML_TAB_RE.sub(" ", text)
    text = _XML_TAG_RE.sub("", text)
    return html.unescape(text)


def printable_runs(content: bytes) -> str:
    """Collect readable runs from raw bytes, as 8-bit text or UTF-16LE, whichever yields more."""
    ascii_runs = [m.group().decode("ascii") for m in _ASCII_RUN_RE.finditer(content)]
    utf16_runs = [m.group().decode("utf-16-le") for m in _UTF16_RUN_RE.finditer(content)]
    best = max(ascii_runs, utf16_runs, key=lambda runs: sum(len(r) for r in runs))
    return "\n".join(run.strip() for run in best if _WORDLIKE_RE.search(run))


class BinarySalvageStrategy(BaseStrategy):
    """Last-resort recovery of readable text from damaged documents."""

    name = "binary_salvage"
    priority = 10
    approach = Approach.TEXT_EXTRACTION
    supported_media_types = WORD_MEDIA_TYPES | {"text/plain", "text/rtf", "application/rtf"}
    expected_extensions = frozenset({"docx", "doc", "rtf", "txt"})

    def _extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> str:
        self.report(on_progress, 0, 2, "Looking for a document body")
        text = self._from_zip(document)
        self.check_cancelled(cancel_event)
        if not text.strip():
            self.report(on_progress, 1, 2, "Scanning raw bytes for text")
            text = printable_runs(document.content)

        if not text.strip():
            raise TextExtractionError(
                f"No recoverable text found in '{document.name}'",
                context={"size": document.size},
            )
        self.report(on_progress, 2, 2, "Recovered text")
        Log.info(f"Salvaged {len(text)} characters from {document.name}")
        self.warn(
            on_warning,
            f"Text of {document.name} was recovered from a damaged file; formatting is lost",
        )
        return text

    @staticmethod
    def _from_zip(document: Document) -> str:
        buffer = io.BytesIO(document.content)
        if not zipfile.is_zipfile(buffer):
            return ""
        try:
            with zipfile.ZipFile(buffer) as archive:
                xml = archive.read("word/document.xml").decode("utf-8", errors="ignore")
        except (zipfile.BadZipFile, KeyError, OSError, zlib.error) as exc:
            Log.debug(f"Zip container of {document.name} is unreadable: {exc}")
            return ""
        return text_from_document_xml(xml)
