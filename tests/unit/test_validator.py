import pytest

from resume_ingest.structuring.models import ContactInfo, Education, ResumeData, WorkExperience
from resume_ingest.validation.rules import (
    DEFAULT_RULES,
    Check,
    RuleSeverity,
    ValidationRule,
    check_contact_info,
    check_education,
    check_skills,
    check_work_experience,
)
from resume_ingest.validation.validator import ResumeValidator

COMPLETE = ResumeData(
    contact=ContactInfo(
        first_name="Jane", last_name="Doe", email="jane.doe@example.com", phone="+1 555 0100"
    ),
    work_experiences=[WorkExperience(job_title="Senior Engineer", company="Acme Corp")],
    education=[Education(school="Technical University", degree="BSc Computer Science")],
    skills=["Python", "SQL"],
)


class TestContactInfoRule:
    def test_complete(self) -> None:
        assert check_contact_info(COMPLETE) == Check(True, "Contact info valid")

    def test_lists_every_issue(self) -> None:
        check = check_contact_info(ResumeData())
        assert check.is_valid is False
        assert check.message == (
            "Contact info issues: No name found, No email address found, No phone number found"
        )
        assert check.suggestions

    def test_last_name_alone_counts_as_name(self) -> None:
        data = ResumeData(contact=ContactInfo(last_name="Doe", email="a@b.c", phone="1"))
        assert check_contact_info(data).is_valid is True


class TestWorkExperienceRule:
    def test_none(self) -> None:
        assert check_work_experience(ResumeData()).message == "No work experience found"

    def test_incomplete_entries(self) -> None:
        data = ResumeData(work_experiences=[WorkExperience(job_title="Engineer", company=" ")])
        assert check_work_experience(data).message == "No valid work experience entries found"

    def test_counts_complete_entries(self) -> None:
        data = ResumeData(
            work_experiences=[
                WorkExperience(job_title="Engineer", company="Initech"),
                WorkExperience(job_title="", company="Acme Corp"),
            ]
        )
        check = check_work_experience(data)
        assert check.is_valid is True
        assert check.message == "Found 1 valid work experience entries"


class TestEducationRule:
    def test_none(self) -> None:
        check = check_education(ResumeData(education=[Education(school="")]))
        assert check == Check(
            False,
            "No education information found",
            check.suggestions,
        )

    def test_degree_is_enough(self) -> None:
        data = ResumeData(education=[Education(school="", degree="MSc")])
        assert check_education(data).message == "Education information found"


class TestSkillsRule:
    def test_none(self) -> None:
        assert check_skills(ResumeData()).message == "No skills found"

    def test_too_many(self) -> None:
        data = ResumeData(skills=[f"skill {i}" for i in range(101)])
        assert check_skills(data).message == "Too many skills detected, may include noise"

    def test_counts(self) -> None:
        assert check_skills(COMPLETE).message == "Found 2 skills"


class TestResumeValidator:
    def test_runs_all_default_rules(self) -> None:
        results = ResumeValidator().validate(COMPLETE)
        assert [r.rule for r in results] == [
            "contact_info_validation",
            "work_experience_validation",
            "education_validation",
            "skills_validation",
        ]
        assert all(r.is_valid for r in results)

    def test_does_not_short_circuit(self) -> None:
        results = ResumeValidator().validate(ResumeData())
        assert len(results) == 4
        assert not any(r.is_valid for r in results)

    def test_severities(self) -> None:
        severities = {r.name: r.severity for r in DEFAULT_RULES}
        assert severities["contact_info_validation"] is RuleSeverity.WARNING
        assert severities["skills_validation"] is RuleSeverity.INFO

    def test_custom_rules(self) -> None:
        rule = ValidationRule("always", RuleSeverity.INFO, lambda data: Check(False, "nope"))
        results = ResumeValidator([rule]).validate(COMPLETE)
        assert [r.to_dict()["message"] for r in results] == ["nope"]

    def test_warnings_only_lists_failures(self) -> None:
        data = ResumeData(contact=COMPLETE.contact, skills=["Python"])
        warnings = ResumeValidator.warnings(ResumeValidator().validate(data))
        assert warnings == [
            "work_experience_validation: No work experience found",
            "education_validation: No education information found",
        ]

    @pytest.mark.parametrize("rule", DEFAULT_RULES, ids=lambda r: r.name)
    def test_rules_do_not_mutate_input(self, rule: ValidationRule) -> None:
        data = ResumeData(skills=["Python"])
        rule.check(data)
        assert data == ResumeData(skills=["Python"])
