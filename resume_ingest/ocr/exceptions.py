class OcrEngineError(Exception):
    """Raised when the OCR engine fails to recognize an image."""


class OcrEngineUnavailableError(OcrEngineError):
    """Raised when the OCR engine binary cannot be found or started."""
