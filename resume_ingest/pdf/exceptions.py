class PdfBackendError(Exception):
    """Raised when a PDF backend cannot open or read a document."""


class PdfEncryptedError(PdfBackendError):
    """Raised when a PDF cannot be opened without a password."""
