"""Completeness rules run over structured resume data.

Every rule is an independent pure function of ``ResumeData``; rules never
mutate their input and their order does not matter.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from resume_ingest.structuring.models import ResumeData

MAX_PLAUSIBLE_SKILLS = 100


class RuleSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationResult:
    rule: str
    severity: RuleSeverity
    is_valid: bool
    message: str
    suggestions: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "rule": self.rule,
            "severity": self.severity.value,
            "is_valid": self.is_valid,
            "message": self.message,
            "suggestions": list(self.suggestions),
        }


@dataclass(frozen=True)
class Check:
    """What a rule function reports before the validator tags it."""

    is_valid: bool
    message: str
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationRule:
    name: str
    severity: RuleSeverity
    check: Callable[[ResumeData], Check]


def check_contact_info(data: ResumeData) -> Check:
    issues: list[str] = []
    if not data.contact.first_name.strip() and not data.contact.last_name.strip():
        issues.append("No name found")
    if not data.contact.email.strip():
        issues.append("No email address found")
    if not data.contact.phone.strip():
        issues.append("No phone number found")
    if not issues:
        return Check(True, "Contact info valid")
    return Check(
        False,
        f"Contact info issues: {', '.join(issues)}",
        (
            "Check if contact information is clearly formatted",
            "Ensure email and phone are in standard formats",
        ),
    )


def check_work_experience(data: ResumeData) -> Check:
    if not data.work_experiences:
        return Check(
            False,
            "No work experience found",
            (
                "Check if work experience section is clearly labeled",
                "Ensure job titles and companies are properly formatted",
            ),
        )
    complete = [
        exp
        for exp in data.work_experiences
        if exp.job_title.strip() and exp.company.strip()
    ]
    if not complete:
        return Check(
            False,
            "No valid work experience entries found",
            (
                "Ensure job titles and company names are clearly stated",
                "Check formatting of work experience section",
            ),
        )
    return Check(True, f"Found {len(complete)} valid work experience entries")


def check_education(data: ResumeData) -> Check:
    if not any(e.school.strip() or e.degree.strip() for e in data.education):
        return Check(
            False,
            "No education information found",
            (
                "Check if education section is clearly labeled",
                "Ensure school names and degrees are properly formatted",
            ),
        )
    return Check(True, "Education information found")


def check_skills(data: ResumeData) -> Check:
    if not data.skills:
        return Check(
            False,
            "No skills found",
            (
                "Check if skills section is clearly labeled",
                "Ensure skills are listed in a recognizable format",
            ),
        )
    if len(data.skills) > MAX_PLAUSIBLE_SKILLS:
        return Check(
            False,
            "Too many skills detected, may include noise",
            (
                "Review extracted skills for accuracy",
                "Check if non-skill content was incorrectly identified",
            ),
        )
    return Check(True, f"Found {len(data.skills)} skills")


DEFAULT_RULES: tuple[ValidationRule, ...] = (
    ValidationRule("contact_info_validation", RuleSeverity.WARNING, check_contact_info),
    ValidationRule("work_experience_validation", RuleSeverity.WARNING, check_work_experience),
    ValidationRule("education_validation", RuleSeverity.INFO, check_education),
    ValidationRule("skills_validation", RuleSeverity.INFO, check_skills),
)
