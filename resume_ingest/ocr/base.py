from abc import ABC, abstractmethod
from dataclasses import dataclass

from PIL import Image

from resume_ingest.config.presets import OcrSettings


@dataclass(frozen=True)
class OcrOutput:
    text: str
    confidence: float  # 0-100, 0 when the engine reports none


class BaseOcrEngine(ABC):
    """Contract for OCR engine adapters."""

    @abstractmethod
    def recognize(self, image: Image.Image, settings: OcrSettings) -> OcrOutput:
        """Recognize text in an image.

        Raises:
            OcrEngineError: if recognition fails for any reason.
        """
