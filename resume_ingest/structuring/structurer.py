"""Rule-based resume structurer."""

from resume_ingest.logging.logger import Log
from resume_ingest.structuring import rules
from resume_ingest.structuring.base import BaseStructurer
from resume_ingest.structuring.exceptions import StructuringError
from resume_ingest.structuring.models import ResumeData
from resume_ingest.structuring.sections import ClassifiedText, SectionType, classify_sections


class RuleBasedStructurer(BaseStructurer):
    """Structures extracted resume text with section headings and pattern rules."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def structure(self, text: str) -> ResumeData:
        if not text.strip():
            raise StructuringError("Cannot structure empty resume text")
        try:
            resume = self._run(text)
        except StructuringError:
            raise
        except Exception as exc:
            raise StructuringError(f"Structuring failed: {exc}") from exc

        Log.info(
            f"Structuring complete: {len(resume.work_experiences)} jobs, "
            f"{len(resume.education)} education entries, {len(resume.skills)} skills"
        )
        return resume

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _run(self, text: str) -> ResumeData:
        classified = classify_sections(text)
        Log.debug(f"Sections found: {[section.value for section in classified.sections]}")
        for warning in classified.warnings:
            Log.warning(warning)

        header = " ".join(
            part for part in (classified.preamble, classified.joined(SectionType.CONTACT)) if part
        )
        contact = rules.extract_contact(header, text)

        if classified.headings:
            experience_text = classified.joined(SectionType.EXPERIENCE)
            education_text = classified.joined(SectionType.EDUCATION)
        else:
            # no headings: the whole text after the name
            experience_text = education_text = rules.split_name(text)[2]

        return ResumeData(
            contact=contact,
            work_experiences=rules.extract_work_experiences(experience_text),
            education=rules.extract_education(education_text),
            skills=self._skills(classified, text),
            summary=self._summary(classified),
        )

    @staticmethod
    def _skills(classified: ClassifiedText, text: str) -> list[str]:
        listed = classified.joined(SectionType.SKILLS)
        if listed:
            return rules.extract_skills(listed)
        return rules.extract_skills(text, listed=False)

    @staticmethod
    def _summary(classified: ClassifiedText) -> str:
        return classified.first(SectionType.SUMMARY) or classified.first(SectionType.OBJECTIVE)
