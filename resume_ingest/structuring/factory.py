from resume_ingest.config.settings import Settings
from resume_ingest.structuring.base import BaseStructurer
from resume_ingest.structuring.structurer import RuleBasedStructurer


class StructurerFactory:
    """Creates the resume structurer."""

    @staticmethod
    def create(settings: Settings) -> BaseStructurer:
        """Create a structurer; the rule-based one needs no settings."""
        return RuleBasedStructurer()
