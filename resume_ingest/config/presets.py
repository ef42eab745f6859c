"""Immutable parser configuration and the named presets built from it."""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from resume_ingest.validation.rules import DEFAULT_RULES, ValidationRule

if TYPE_CHECKING:
    from resume_ingest.config.settings import Settings


@dataclass(frozen=True)
class OcrSettings:
    language: str = "eng"
    engine_mode: int = 1  # LSTM
    page_seg_mode: int = 3  # fully automatic page segmentation
    preserve_interword_spaces: bool = True
    dpi: int = 300
    whitelist: str | None = None
    blacklist: str | None = None


@dataclass(frozen=True)
class ParserConfig:
    max_retries: int = 3
    timeout_ms: int = 60_000
    enable_ocr: bool = True
    ocr_settings: OcrSettings = field(default_factory=OcrSettings)
    validation_rules: tuple[ValidationRule, ...] = DEFAULT_RULES
    min_text_length: int = 20
    ocr_locked_documents: bool = False

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if self.min_text_length < 0:
            raise ValueError(f"min_text_length must be >= 0, got {self.min_text_length}")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ParserConfig":
        """Start from the configured preset and apply explicit overrides."""
        config = get_preset(settings.parser_preset)
        ocr = replace(
            config.ocr_settings,
            language=settings.ocr_language,
            page_seg_mode=(
                settings.ocr_page_seg_mode
                if settings.ocr_page_seg_mode is not None
                else config.ocr_settings.page_seg_mode
            ),
            dpi=settings.ocr_dpi if settings.ocr_dpi is not None else config.ocr_settings.dpi,
            whitelist=(
                settings.ocr_whitelist
                if settings.ocr_whitelist is not None
                else config.ocr_settings.whitelist
            ),
            blacklist=(
                settings.ocr_blacklist
                if settings.ocr_blacklist is not None
                else config.ocr_settings.blacklist
            ),
        )
        return replace(
            config,
            max_retries=(
                settings.parser_max_retries
                if settings.parser_max_retries is not None
                else config.max_retries
            ),
            timeout_ms=(
                settings.parser_timeout_ms
                if settings.parser_timeout_ms is not None
                else config.timeout_ms
            ),
            enable_ocr=(
                settings.ocr_enabled if settings.ocr_enabled is not None else config.enable_ocr
            ),
            ocr_settings=ocr,
            min_text_length=settings.parser_min_text_length,
            ocr_locked_documents=settings.parser_ocr_locked_documents,
        )


DEFAULT_CONFIG = ParserConfig()

PRESETS: dict[str, ParserConfig] = {
    "fast": replace(DEFAULT_CONFIG, max_retries=1, timeout_ms=30_000, enable_ocr=False),
    "comprehensive": replace(DEFAULT_CONFIG, max_retries=5, timeout_ms=120_000),
    "ocr_focused": replace(
        DEFAULT_CONFIG,
        max_retries=2,
        timeout_ms=90_000,
        ocr_settings=replace(DEFAULT_CONFIG.ocr_settings, page_seg_mode=6, dpi=400),
    ),
    "production": replace(DEFAULT_CONFIG, max_retries=3, timeout_ms=60_000),
}


def get_preset(name: str) -> ParserConfig:
    preset = PRESETS.get(name.lower())
    if preset is None:
        raise ValueError(f"Unknown parser preset '{name}'. Choose from: {sorted(PRESETS)}")
    return preset
