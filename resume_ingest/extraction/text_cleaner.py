"""Normalization pass applied to every strategy's raw output.

The pass is idempotent: cleaning already-clean text returns it unchanged.
"""

import re

_GLYPH_FIXES = str.maketrans(
    {
        "|": "I",
        "¦": "I",  # broken bar
        "ǀ": "I",  # dental click, renders as a bar
        "ﬀ": "ff",
        "ﬁ": "fi",
        "ﬂ": "fl",
        "ﬃ": "ffi",
        "ﬄ": "ffl",
    }
)
_WHITESPACE_RE = re.compile(r"\s+")
_CAMEL_RE = re.compile(r"([a-z])([A-Z])")
_DIGIT_LETTER_RE = re.compile(r"(\d)([A-Za-z])")
_LETTER_DIGIT_RE = re.compile(r"([A-Za-z])(\d)")


def clean_text(text: str) -> str:
    """Collapse whitespace, repair OCR glyph confusions and restore word boundaries."""
    cleaned = text.translate(_GLYPH_FIXES)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    cleaned = _CAMEL_RE.sub(r"\1 \2", cleaned)
    cleaned = _DIGIT_LETTER_RE.sub(r"\1 \2", cleaned)
    cleaned = _LETTER_DIGIT_RE.sub(r"\1 \2", cleaned)
    return cleaned.strip()
