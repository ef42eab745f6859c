import io
import threading

import pytest
from PIL import Image

from resume_ingest.config.presets import OcrSettings
from resume_ingest.extraction.exceptions import (
    DocumentLockedError,
    EmptyOrCorruptInputError,
    ExtractionCancelledError,
    OcrError,
)
from resume_ingest.extraction.models import Document
from resume_ingest.extraction.strategies.ocr_strategy import (
    UNIFORM_BLOCK_PSM,
    OcrStrategy,
    score_output,
)
from resume_ingest.ocr.base import OcrOutput
from resume_ingest.ocr.exceptions import OcrEngineError, OcrEngineUnavailableError
from tests.fakes import FakeOcrEngine, FakePage, FakePdfBackend, ModeOcrEngine

RESUME_READING = (
    "Jane Doe\njane@example.com\nExperience\nAcme Corp 2019 - 2023\nEducation\nState University"
)


class RaisingEngine(FakeOcrEngine):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self._error = error

    def recognize(self, image: Image.Image, settings: OcrSettings) -> OcrOutput:
        self.calls.append(settings)
        raise self._error


def _png(png_bytes: bytes) -> Document:
    return Document(name="scan.png", media_type="image/png", content=png_bytes)


def _wide_png() -> Document:
    buf = io.BytesIO()
    Image.new("RGB", (1400, 100), "white").save(buf, format="PNG")
    return Document(name="scan.png", media_type="image/png", content=buf.getvalue())


def _pdf() -> Document:
    return Document(name="scan.pdf", media_type="application/pdf", content=b"%PDF-1.4 fake")


class TestScoreOutput:
    def test_resume_vocabulary_outscores_noise(self) -> None:
        resume = OcrOutput(text=RESUME_READING, confidence=60.0)
        noise = OcrOutput(text="J4ne D0e |l| ~~ ,,", confidence=70.0)
        assert score_output(resume) > score_output(noise)

    def test_short_reading_is_penalized(self) -> None:
        short = OcrOutput(text="x" * 99, confidence=80.0)
        long = OcrOutput(text="x" * 100, confidence=80.0)
        assert score_output(long) - score_output(short) > 30


class TestOcrStrategyImages:
    def test_recognizes_image(self, png_bytes: bytes) -> None:
        engine = FakeOcrEngine(OcrOutput(text="Jane Doe\nEngineer", confidence=91.0))
        strategy = OcrStrategy(engine, FakePdfBackend())
        assert strategy.extract(_png(png_bytes)) == "Jane Doe Engineer"
        assert [call.page_seg_mode for call in engine.calls] == [3, UNIFORM_BLOCK_PSM]

    def test_multi_frame_tiff(self) -> None:
        buf = io.BytesIO()
        frames = [Image.new("RGB", (50, 50), "white") for _ in range(2)]
        frames[0].save(buf, format="TIFF", save_all=True, append_images=frames[1:])
        engine = FakeOcrEngine(
            OcrOutput(text="page one", confidence=80.0),
            OcrOutput(text="page one", confidence=80.0),
            OcrOutput(text="page two", confidence=80.0),
        )
        doc = Document(name="scan.tiff", media_type="image/tiff", content=buf.getvalue())
        assert OcrStrategy(engine, FakePdfBackend()).extract(doc) == "page one page two"
        assert len(engine.calls) == 4

    def test_corrupt_image_is_not_retryable(self) -> None:
        doc = Document(name="scan.png", media_type="image/png", content=b"not an image")
        with pytest.raises(EmptyOrCorruptInputError) as exc_info:
            OcrStrategy(FakeOcrEngine(), FakePdfBackend()).extract(doc)
        assert exc_info.value.retryable is False

    def test_engine_unavailable_is_not_retryable(self, png_bytes: bytes) -> None:
        engine = RaisingEngine(OcrEngineUnavailableError("tesseract is not installed"))
        with pytest.raises(OcrError, match="unavailable") as exc_info:
            OcrStrategy(engine, FakePdfBackend()).extract(_png(png_bytes))
        assert exc_info.value.retryable is False
        assert len(engine.calls) == 1


class TestPageSegmentationPasses:
    def test_best_scoring_reading_is_kept(self, png_bytes: bytes) -> None:
        engine = ModeOcrEngine(
            {
                3: OcrOutput(text="J4ne D0e |l| ~~", confidence=70.0),
                UNIFORM_BLOCK_PSM: OcrOutput(text=RESUME_READING, confidence=65.0),
            }
        )
        text = OcrStrategy(engine, FakePdfBackend()).extract(_png(png_bytes))
        assert "Acme Corp 2019 - 2023" in text
        assert "J4ne" not in text

    def test_empty_reading_loses_to_uniform_block(self, png_bytes: bytes) -> None:
        engine = ModeOcrEngine(
            {
                3: OcrOutput(text="", confidence=0.0),
                UNIFORM_BLOCK_PSM: OcrOutput(text="Jane Doe", confidence=60.0),
            }
        )
        assert OcrStrategy(engine, FakePdfBackend()).extract(_png(png_bytes)) == "Jane Doe"
        assert engine.calls == [3, UNIFORM_BLOCK_PSM]

    def test_confident_long_reading_stops_early(self, png_bytes: bytes) -> None:
        reading = OcrOutput(text="Experienced engineer. " * 60, confidence=92.0)
        engine = ModeOcrEngine({3: reading, UNIFORM_BLOCK_PSM: reading})
        OcrStrategy(engine, FakePdfBackend()).extract(_png(png_bytes))
        assert engine.calls == [3]

    def test_configured_mode_runs_first(self, png_bytes: bytes) -> None:
        reading = OcrOutput(text="Jane Doe", confidence=60.0)
        engine = ModeOcrEngine({3: reading, 4: reading, UNIFORM_BLOCK_PSM: reading})
        OcrStrategy(engine, FakePdfBackend(), OcrSettings(page_seg_mode=4)).extract(
            _png(png_bytes)
        )
        assert engine.calls == [4, 3, UNIFORM_BLOCK_PSM]

    def test_uniform_block_setting_does_not_repeat_a_mode(self, png_bytes: bytes) -> None:
        reading = OcrOutput(text="Jane Doe", confidence=60.0)
        engine = ModeOcrEngine({3: reading, UNIFORM_BLOCK_PSM: reading})
        settings = OcrSettings(page_seg_mode=UNIFORM_BLOCK_PSM)
        OcrStrategy(engine, FakePdfBackend(), settings).extract(_png(png_bytes))
        assert engine.calls == [UNIFORM_BLOCK_PSM, 3]

    def test_one_failing_pass_is_a_warning(self, png_bytes: bytes) -> None:
        engine = ModeOcrEngine({UNIFORM_BLOCK_PSM: OcrOutput(text="Jane Doe", confidence=60.0)})
        warnings: list[str] = []
        text = OcrStrategy(engine, FakePdfBackend()).extract(
            _png(png_bytes), on_warning=warnings.append
        )
        assert text == "Jane Doe"
        assert any("mode 3 failed on page 1" in w for w in warnings)

    def test_every_pass_failing_is_retryable_ocr_error(self, png_bytes: bytes) -> None:
        engine = RaisingEngine(OcrEngineError("crashed"))
        warnings: list[str] = []
        with pytest.raises(OcrError) as exc_info:
            OcrStrategy(engine, FakePdfBackend()).extract(
                _png(png_bytes), on_warning=warnings.append
            )
        assert exc_info.value.retryable is True
        assert exc_info.value.context["page"] == 1
        assert len(warnings) == 2


class TestOcrWarnings:
    def test_low_confidence(self, png_bytes: bytes) -> None:
        engine = FakeOcrEngine(OcrOutput(text="Jane Doe", confidence=20.0))
        warnings: list[str] = []
        OcrStrategy(engine, FakePdfBackend()).extract(
            _png(png_bytes), on_warning=warnings.append
        )
        assert any(w.startswith("Low OCR confidence (20.0) for scan.png") for w in warnings)

    def test_confident_reading_has_no_confidence_warning(self) -> None:
        engine = FakeOcrEngine(OcrOutput(text="Jane Doe", confidence=88.0))
        warnings: list[str] = []
        OcrStrategy(engine, FakePdfBackend()).extract(_wide_png(), on_warning=warnings.append)
        assert warnings == []

    def test_narrow_image_is_low_resolution(self, png_bytes: bytes) -> None:
        engine = FakeOcrEngine(OcrOutput(text="Jane Doe", confidence=88.0))
        warnings: list[str] = []
        OcrStrategy(engine, FakePdfBackend()).extract(
            _png(png_bytes), on_warning=warnings.append
        )
        assert "Low resolution image detected; OCR accuracy may be reduced" in warnings

    def test_low_render_dpi(self) -> None:
        engine = FakeOcrEngine(OcrOutput(text="Jane Doe", confidence=88.0))
        warnings: list[str] = []
        OcrStrategy(engine, FakePdfBackend([FakePage()]), OcrSettings(dpi=100)).extract(
            _pdf(), on_warning=warnings.append
        )
        assert any("rendered at 100 DPI" in w for w in warnings)

    def test_default_render_dpi_is_quiet(self) -> None:
        engine = FakeOcrEngine(OcrOutput(text="Jane Doe", confidence=88.0))
        warnings: list[str] = []
        OcrStrategy(engine, FakePdfBackend([FakePage()])).extract(
            _pdf(), on_warning=warnings.append
        )
        assert warnings == []


class TestOcrStrategyPdf:
    def test_rasterizes_each_page(self) -> None:
        backend = FakePdfBackend([FakePage(), FakePage()])
        engine = FakeOcrEngine(
            OcrOutput(text="first", confidence=70.0),
            OcrOutput(text="first", confidence=70.0),
            OcrOutput(text="second", confidence=70.0),
        )
        assert OcrStrategy(engine, backend).extract(_pdf()) == "first second"
        assert backend.opened[0].closed is True

    def test_reports_progress(self) -> None:
        backend = FakePdfBackend([FakePage(), FakePage()])
        engine = FakeOcrEngine(OcrOutput(text="text", confidence=70.0))
        received: list[tuple[int, int, str]] = []
        OcrStrategy(engine, backend).extract(_pdf(), on_progress=lambda *a: received.append(a))
        assert (2, 2) in [(done, total) for done, total, _ in received]

    def test_locked_pdf(self) -> None:
        with pytest.raises(DocumentLockedError):
            OcrStrategy(FakeOcrEngine(), FakePdfBackend(encrypted=True)).extract(_pdf())

    def test_broken_pdf(self) -> None:
        with pytest.raises(EmptyOrCorruptInputError):
            OcrStrategy(FakeOcrEngine(), FakePdfBackend(broken=True)).extract(_pdf())

    def test_cancellation_between_pages(self) -> None:
        event = threading.Event()
        event.set()
        backend = FakePdfBackend([FakePage()])
        with pytest.raises(ExtractionCancelledError):
            OcrStrategy(FakeOcrEngine(), backend).extract(_pdf(), cancel_event=event)
