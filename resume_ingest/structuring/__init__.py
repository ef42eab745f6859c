from resume_ingest.structuring.base import BaseStructurer
from resume_ingest.structuring.factory import StructurerFactory
from resume_ingest.structuring.structurer import RuleBasedStructurer

__all__ = ["BaseStructurer", "RuleBasedStructurer", "StructurerFactory"]
