class StructuringError(Exception):
    """Raised when resume structuring fails."""
