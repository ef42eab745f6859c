import pytest

from resume_ingest.config.presets import DEFAULT_CONFIG
from resume_ingest.extraction.exceptions import (
    DocumentLockedError,
    EmptyOrCorruptInputError,
    OcrError,
    TextExtractionError,
    UnknownParserError,
)
from resume_ingest.extraction.models import (
    AnalysisResult,
    Approach,
    Document,
    LayoutComplexity,
)
from resume_ingest.extraction.registry import (
    DEFAULT_FALLBACK_RULES,
    FallbackRule,
    StrategyRegistry,
    build_default_registry,
)
from resume_ingest.extraction.strategies.plain_text_strategy import PlainTextStrategy
from tests.fakes import FakeOcrEngine, FakePdfBackend

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _registry() -> StrategyRegistry:
    return build_default_registry(FakePdfBackend(), FakeOcrEngine(), DEFAULT_CONFIG)


def _doc(name: str, media_type: str, size: int = 4096) -> Document:
    return Document(name=name, media_type=media_type, content=b"x" * size)


def _analysis(approach: Approach) -> AnalysisResult:
    return AnalysisResult(
        is_password_protected=False,
        is_image_based=approach is Approach.OCR,
        has_selectable_text=approach is not Approach.OCR,
        page_count=1,
        text_density=0.0,
        layout_complexity=LayoutComplexity.SIMPLE,
        recommended_approach=approach,
    )


PDF = _doc("cv.pdf", "application/pdf")
DOCX = _doc("cv.docx", DOCX_TYPE)
PNG = _doc("scan.png", "image/png")
ALL = {"pdf_text", "docx", "plain_text", "ocr", "binary_salvage"}


class TestStrategyRegistry:
    def test_default_order_is_descending_priority(self) -> None:
        names = [s.name for s in _registry().strategies]
        assert names == ["pdf_text", "docx", "plain_text", "ocr", "binary_salvage"]

    def test_default_configuration_is_sound(self) -> None:
        assert _registry().validate_configuration() == []

    def test_get_unknown_returns_none(self) -> None:
        assert _registry().get("nope") is None

    def test_duplicate_name_rejected(self) -> None:
        registry = _registry()
        with pytest.raises(ValueError, match="already registered"):
            registry.add(PlainTextStrategy())

    def test_remove(self) -> None:
        registry = _registry()
        assert registry.remove("ocr") is True
        assert registry.remove("ocr") is False
        assert registry.get("ocr") is None

    def test_validate_reports_dangling_rule_targets(self) -> None:
        registry = StrategyRegistry([PlainTextStrategy()])
        issues = registry.validate_configuration()
        assert "Fallback rule 'pdf_to_ocr' targets unknown strategy 'ocr'" in issues

    def test_validate_reports_empty_registry(self) -> None:
        assert "No strategies registered" in StrategyRegistry().validate_configuration()

    def test_rules_sorted_by_priority(self) -> None:
        registry = StrategyRegistry(rules=tuple(reversed(DEFAULT_FALLBACK_RULES)))
        assert [r.priority for r in registry.rules] == [100, 90, 80, 70]


class TestRank:
    def test_pdf_without_analysis_prefers_priority(self) -> None:
        ranked = _registry().rank(PDF)
        assert [r.name for r in ranked] == ["pdf_text", "ocr"]
        assert all(r.confidence == 100 for r in ranked)

    def test_pdf_recommended_ocr_wins_tie(self) -> None:
        ranked = _registry().rank(PDF, _analysis(Approach.OCR))
        assert [r.name for r in ranked] == ["ocr", "pdf_text"]
        assert ranked[0].promoted is True

    def test_hybrid_promotes_nothing(self) -> None:
        ranked = _registry().rank(PDF, _analysis(Approach.HYBRID))
        assert [r.name for r in ranked] == ["pdf_text", "ocr"]
        assert not any(r.promoted for r in ranked)

    def test_ocr_disabled(self) -> None:
        assert [r.name for r in _registry().rank(PDF, enable_ocr=False)] == ["pdf_text"]

    def test_allowed_approaches(self) -> None:
        ranked = _registry().rank(PDF, allowed_approaches=frozenset({Approach.OCR}))
        assert [r.name for r in ranked] == ["ocr"]

    def test_docx_candidates(self) -> None:
        assert [r.name for r in _registry().rank(DOCX)] == ["docx", "binary_salvage"]

    def test_unknown_type_has_no_candidates(self) -> None:
        assert _registry().rank(_doc("cv.xyz", "application/x-unknown")) == []


class TestSelectFallback:
    def test_pdf_text_failure_goes_to_ocr(self) -> None:
        error = TextExtractionError("No text could be extracted; document may be image-based")
        assert _registry().select_fallback(error, PDF, {"pdf_text"}, ALL) == "ocr"

    def test_corrupt_docx_goes_to_salvage(self) -> None:
        error = EmptyOrCorruptInputError("Document 'cv.docx' has a corrupt zip format")
        assert _registry().select_fallback(error, DOCX, {"docx"}, ALL) == "binary_salvage"

    def test_non_retryable_never_matches(self) -> None:
        error = DocumentLockedError("PDF is password protected")
        assert _registry().select_fallback(error, PDF, {"pdf_text"}, ALL) is None

    def test_ocr_failure_has_no_generic_fallback(self) -> None:
        error = OcrError("OCR recognition failed on page 1")
        assert _registry().select_fallback(error, PNG, {"ocr"}, ALL) is None

    def test_generic_rule_for_other_types(self) -> None:
        error = UnknownParserError("something broke")
        doc = _doc("cv.txt", "text/plain")
        assert _registry().select_fallback(error, doc, {"plain_text"}, ALL) == "ocr"

    def test_target_already_attempted(self) -> None:
        error = TextExtractionError("No text could be extracted")
        assert _registry().select_fallback(error, PDF, {"pdf_text", "ocr"}, ALL) is None

    def test_target_unavailable(self) -> None:
        error = TextExtractionError("No text could be extracted")
        available = ALL - {"ocr"}
        assert _registry().select_fallback(error, PDF, {"pdf_text"}, available) is None


class TestFallbackRule:
    def test_catch_all_applies_everywhere(self) -> None:
        rule = FallbackRule(name="any", priority=1, target="ocr")
        assert rule.applies_to(_doc("a.bin", "application/octet-stream")) is True

    def test_error_kind_filter(self) -> None:
        rule = FallbackRule(
            name="kinds", priority=1, target="ocr", error_kinds=(OcrError.kind,)
        )
        assert rule.matches(OcrError("x"), PDF) is True
        assert rule.matches(TextExtractionError("x"), PDF) is False

    def test_to_dict(self) -> None:
        data = DEFAULT_FALLBACK_RULES[-1].to_dict()
        assert data["name"] == "generic_ocr"
        assert data["excluded_kinds"] == ["ocr_failed"]
