import re
import threading

from resume_ingest.extraction.exceptions import TextExtractionError
from resume_ingest.extraction.models import Approach, Document
from resume_ingest.extraction.strategies.base import (
    BaseStrategy,
    ProgressCallback,
    WarningCallback,
)
from resume_ingest.logging.logger import Log

ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")

_RTF_HEADER = b"{\\rtf"
_RTF_BREAK_RE = re.compile(r"\\(?:par|line|row|cell|tab)\b ?")
_RTF_HEX_RE = re.compile(r"\\'([0-9a-fA-F]{2})")
_RTF_DESTINATION_RE = re.compile(
    r"\{\\(?:\*|fonttbl|colortbl|stylesheet|info)(?:[^{}]|\{[^{}]*\})*\}"
)
_RTF_CONTROL_RE = re.compile(r"\\[a-zA-Z]+-?\d* ?")
# escaped literals are parked on private-use code points while markup is removed
_RTF_ESCAPES = {"\\\\": "\ue000", "\\{": "\ue001", "\\}": "\ue002"}


def decode_text(content: bytes) -> tuple[str, str]:
    """Decode bytes with the first encoding that accepts them.

    Returns (text, encoding). latin-1 maps every byte, so decoding never fails.
    """
    for encoding in ENCODINGS:
        try:
            return content.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return content.decode("latin-1", errors="replace"), "latin-1"


def strip_rtf(rtf: str) -> str:
    """Reduce RTF markup to its visible text."""
    text = rtf
    for escaped, placeholder in _RTF_ESCAPES.items():
        text = text.replace(escaped, placeholder)
    text = _RTF_DESTINATION_RE.sub("", text)
    text = _RTF_BREAK_RE.sub("\n", text)
    text = _RTF_HEX_RE.sub(
        lambda m: bytes([int(m.group(1), 16)]).decode("cp1252", "replace"), text
    )
    text = _RTF_CONTROL_RE.sub("", text)
    text = text.replace("{", "").replace("}", "")
    for escaped, placeholder in _RTF_ESCAPES.items():
        text = text.replace(placeholder, escaped[1])
    return text


class PlainTextStrategy(BaseStrategy):
    """Decodes plain text and RTF files."""

    name = "plain_text"
    priority = 70
    approach = Approach.TEXT_EXTRACTION
    supported_media_types = frozenset({"text/plain", "text/rtf", "application/rtf"})
    expected_extensions = frozenset({"txt", "rtf"})

    def _extract(
        self,
        document: Document,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
        on_warning: WarningCallback | None,
    ) -> str:
        self.report(on_progress, 0, 1, "Decoding text")
        text, encoding = decode_text(document.content)
        if encoding != "utf-8-sig":
            Log.debug(f"{document.name} decoded as {encoding}")

        if document.content.lstrip().startswith(_RTF_HEADER):
            text = strip_rtf(text)

        if "\x00" in text:
            raise TextExtractionError(
                f"'{document.name}' contains binary data and is not plain text",
                context={"encoding": encoding},
            )
        self.report(on_progress, 1, 1, "Text decoded")
        return text
