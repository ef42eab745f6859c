import pytesseract
from PIL import Image

from resume_ingest.config.presets import OcrSettings
from resume_ingest.ocr.base import BaseOcrEngine, OcrOutput
from resume_ingest.ocr.exceptions import OcrEngineError, OcrEngineUnavailableError


def build_tesseract_config(settings: OcrSettings) -> str:
    """Translate OcrSettings into a tesseract command-line config string."""
    parts = [
        f"--oem {settings.engine_mode}",
        f"--psm {settings.page_seg_mode}",
        f"--dpi {settings.dpi}",
    ]
    if settings.preserve_interword_spaces:
        parts.append("-c preserve_interword_spaces=1")
    if settings.whitelist:
        parts.append(f"-c tessedit_char_whitelist={settings.whitelist}")
    if settings.blacklist:
        parts.append(f"-c tessedit_char_blacklist={settings.blacklist}")
    return " ".join(parts)


class TesseractEngine(BaseOcrEngine):
    """Recognizes text with Tesseract through pytesseract."""

    def __init__(self, tesseract_cmd: str = "") -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image: Image.Image, settings: OcrSettings) -> OcrOutput:
        try:
            data = pytesseract.image_to_data(
                image,
                lang=settings.language,
                config=build_tesseract_config(settings),
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractNotFoundError as exc:
            raise OcrEngineUnavailableError(f"tesseract is not installed: {exc}") from exc
        except (pytesseract.TesseractError, RuntimeError) as exc:
            raise OcrEngineError(f"tesseract recognition failed: {exc}") from exc

        return self._assemble(data)

    @staticmethod
    def _assemble(data: dict[str, list[object]]) -> OcrOutput:
        """Join recognized words line by line and average word confidences."""
        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []
        for i, raw_text in enumerate(data.get("text", [])):
            word = str(raw_text).strip()
            conf = float(data["conf"][i])  # type: ignore[arg-type]
            if not word or conf < 0:
                continue
            key = (
                int(data["block_num"][i]),  # type: ignore[call-overload]
                int(data["par_num"][i]),  # type: ignore[call-overload]
                int(data["line_num"][i]),  # type: ignore[call-overload]
            )
            lines.setdefault(key, []).append(word)
            confidences.append(conf)

        text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return OcrOutput(text=text, confidence=confidence)
