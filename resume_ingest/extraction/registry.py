"""Strategy catalogue and the data-driven fallback table."""

from dataclasses import asdict, dataclass

from resume_ingest.config.presets import ParserConfig
from resume_ingest.extraction.exceptions import ErrorKind, ParserError
from resume_ingest.extraction.models import AnalysisResult, Approach, Document
from resume_ingest.extraction.strategies.base import BaseStrategy
from resume_ingest.extraction.strategies.binary_salvage_strategy import BinarySalvageStrategy
from resume_ingest.extraction.strategies.docx_strategy import DocxStrategy
from resume_ingest.extraction.strategies.ocr_strategy import IMAGE_EXTENSIONS, OcrStrategy
from resume_ingest.extraction.strategies.pdf_text_strategy import PdfTextStrategy
from resume_ingest.extraction.strategies.plain_text_strategy import PlainTextStrategy
from resume_ingest.logging.logger import Log
from resume_ingest.ocr.base import BaseOcrEngine
from resume_ingest.pdf.base import BasePdfBackend


@dataclass(frozen=True)
class FallbackRule:
    """A conditional pointer to the strategy to try after a failure.

    Empty predicate fields match anything. Only retryable errors can match.
    """

    name: str
    priority: int
    target: str
    media_markers: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    message_keywords: tuple[str, ...] = ()
    excluded_keywords: tuple[str, ...] = ()
    error_kinds: tuple[ErrorKind, ...] = ()
    excluded_kinds: tuple[ErrorKind, ...] = ()

    def applies_to(self, document: Document) -> bool:
        if not self.media_markers and not self.extensions:
            return True
        media_type = document.base_media_type
        return (
            any(marker in media_type for marker in self.media_markers)
            or document.extension in self.extensions
        )

    def matches(self, error: ParserError, document: Document) -> bool:
        if not error.retryable or not self.applies_to(document):
            return False
        if self.error_kinds and error.kind not in self.error_kinds:
            return False
        if error.kind in self.excluded_kinds:
            return False
        message = error.message.lower()
        if self.message_keywords and not any(k in message for k in self.message_keywords):
            return False
        return not any(k in message for k in self.excluded_keywords)

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["error_kinds"] = [kind.value for kind in self.error_kinds]
        data["excluded_kinds"] = [kind.value for kind in self.excluded_kinds]
        return data


DEFAULT_FALLBACK_RULES: tuple[FallbackRule, ...] = (
    FallbackRule(
        name="pdf_to_ocr",
        priority=100,
        target="ocr",
        media_markers=("pdf",),
        extensions=("pdf",),
        message_keywords=("text", "extract", "empty", "image-based"),
    ),
    FallbackRule(
        name="docx_to_text",
        priority=90,
        target="binary_salvage",
        media_markers=("word", "msword"),
        extensions=("docx", "doc"),
        message_keywords=("corrupt", "format", "zip"),
    ),
    FallbackRule(
        name="image_to_ocr",
        priority=80,
        target="ocr",
        media_markers=("image/",),
        extensions=tuple(sorted(IMAGE_EXTENSIONS)),
    ),
    FallbackRule(
        name="generic_ocr",
        priority=70,
        target="ocr",
        excluded_keywords=("ocr", "tesseract", "recognition"),
        excluded_kinds=(ErrorKind.OCR_FAILED,),
    ),
)


@dataclass(frozen=True)
class RankedStrategy:
    strategy: BaseStrategy
    confidence: int
    promoted: bool = False

    @property
    def name(self) -> str:
        return self.strategy.name


class StrategyRegistry:
    """Holds strategies in descending priority and the fallback rules that link them."""

    def __init__(
        self,
        strategies: list[BaseStrategy] | None = None,
        rules: tuple[FallbackRule, ...] = DEFAULT_FALLBACK_RULES,
    ) -> None:
        self._strategies: list[BaseStrategy] = []
        self._rules = tuple(sorted(rules, key=lambda rule: -rule.priority))
        for strategy in strategies or []:
            self.add(strategy)

    @property
    def strategies(self) -> list[BaseStrategy]:
        return list(self._strategies)

    @property
    def rules(self) -> tuple[FallbackRule, ...]:
        return self._rules

    def get(self, name: str) -> BaseStrategy | None:
        return next((s for s in self._strategies if s.name == name), None)

    def add(self, strategy: BaseStrategy) -> None:
        if self.get(strategy.name) is not None:
            raise ValueError(f"Strategy '{strategy.name}' is already registered")
        self._strategies.append(strategy)
        self._strategies.sort(key=lambda s: -s.priority)

    def remove(self, name: str) -> bool:
        strategy = self.get(name)
        if strategy is None:
            return False
        self._strategies.remove(strategy)
        return True

    def rank(
        self,
        document: Document,
        analysis: AnalysisResult | None = None,
        enable_ocr: bool = True,
        allowed_approaches: frozenset[Approach] | None = None,
    ) -> list[RankedStrategy]:
        """Order the strategies able to handle the document, most promising first.

        Confidence decides; strategies implementing the analyzer's recommended
        approach win ties; static priority breaks the rest.
        """
        recommended = analysis.recommended_approach if analysis is not None else None
        ranked: list[RankedStrategy] = []
        for strategy in self._strategies:
            if not strategy.can_handle(document):
                continue
            if strategy.approach is Approach.OCR and not enable_ocr:
                continue
            if allowed_approaches is not None and strategy.approach not in allowed_approaches:
                continue
            ranked.append(
                RankedStrategy(
                    strategy=strategy,
                    confidence=strategy.confidence_score(document),
                    promoted=strategy.approach is recommended,
                )
            )
        ranked.sort(key=lambda r: (-r.confidence, not r.promoted, -r.strategy.priority))
        return ranked

    def select_fallback(
        self,
        error: ParserError,
        document: Document,
        attempted: set[str],
        available: set[str],
    ) -> str | None:
        """Return the target of the first matching rule if it can still run.

        Returns None when no rule matches, or when the winning rule points at a
        strategy already attempted or not available for this document.
        """
        for rule in self._rules:
            if not rule.matches(error, document):
                continue
            if rule.target in attempted or rule.target not in available:
                Log.debug(
                    f"Fallback rule {rule.name} matched but {rule.target} "
                    f"is already tried or unavailable"
                )
                return None
            Log.info(f"Fallback rule {rule.name} selected {rule.target} for {document.name}")
            return rule.target
        return None

    def validate_configuration(self) -> list[str]:
        """Return human-readable problems with the registry; empty when sound."""
        issues: list[str] = []
        if not self._strategies:
            issues.append("No strategies registered")
        names = {s.name for s in self._strategies}
        for rule in self._rules:
            if rule.target not in names:
                issues.append(
                    f"Fallback rule '{rule.name}' targets unknown strategy '{rule.target}'"
                )
        seen: dict[int, str] = {}
        for strategy in self._strategies:
            if strategy.priority in seen:
                issues.append(
                    f"Strategies '{seen[strategy.priority]}' and '{strategy.name}' "
                    f"share priority {strategy.priority}"
                )
            seen.setdefault(strategy.priority, strategy.name)
        return issues


def build_default_registry(
    pdf_backend: BasePdfBackend,
    ocr_engine: BaseOcrEngine,
    config: ParserConfig,
) -> StrategyRegistry:
    return StrategyRegistry(
        strategies=[
            PdfTextStrategy(pdf_backend),
            DocxStrategy(),
            PlainTextStrategy(),
            OcrStrategy(ocr_engine, pdf_backend, config.ocr_settings),
            BinarySalvageStrategy(),
        ]
    )
