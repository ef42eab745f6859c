from collections.abc import Iterable

from resume_ingest.logging.logger import Log
from resume_ingest.structuring.models import ResumeData
from resume_ingest.validation.rules import DEFAULT_RULES, ValidationResult, ValidationRule


class ResumeValidator:
    """Runs every registered rule over a resume, without short-circuiting."""

    def __init__(self, rules: Iterable[ValidationRule] = DEFAULT_RULES) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        return self._rules

    def validate(self, resume: ResumeData) -> list[ValidationResult]:
        results: list[ValidationResult] = []
        for rule in self._rules:
            check = rule.check(resume)
            results.append(
                ValidationResult(
                    rule=rule.name,
                    severity=rule.severity,
                    is_valid=check.is_valid,
                    message=check.message,
                    suggestions=check.suggestions,
                )
            )
        failed = [r for r in results if not r.is_valid]
        Log.info(f"Validation complete: {len(results) - len(failed)}/{len(results)} rules passed")
        return results

    @staticmethod
    def warnings(results: Iterable[ValidationResult]) -> list[str]:
        """Flatten failed results into human-readable warning lines."""
        return [f"{r.rule}: {r.message}" for r in results if not r.is_valid]
