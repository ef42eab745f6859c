from abc import ABC, abstractmethod

from resume_ingest.structuring.models import ResumeData


class BaseStructurer(ABC):
    """Contract for all resume structuring adapters."""

    @abstractmethod
    def structure(self, text: str) -> ResumeData:
        """Turn extracted resume text into structured data.

        Args:
            text: Cleaned plain text produced by the extraction engine.

        Returns:
            ResumeData with contact details, work history, education and skills.

        Raises:
            StructuringError: on any failure.
        """
