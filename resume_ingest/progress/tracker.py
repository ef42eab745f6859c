"""Phase-weighted progress and ETA reporting for one parse."""

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum

from resume_ingest.logging.logger import Log


class ProcessingPhase(str, Enum):
    INITIALIZATION = "initialization"
    ANALYSIS = "analysis"
    TEXT_EXTRACTION = "text_extraction"
    OCR_PROCESSING = "ocr_processing"
    POST_PROCESSING = "post_processing"
    VALIDATION = "validation"
    COMPLETE = "complete"


@dataclass(frozen=True)
class PhaseDefinition:
    phase: ProcessingPhase
    weight: int
    label: str
    page_based: bool = False


PHASE_DEFINITIONS: tuple[PhaseDefinition, ...] = (
    PhaseDefinition(ProcessingPhase.INITIALIZATION, 1, "Preparing document"),
    PhaseDefinition(ProcessingPhase.ANALYSIS, 2, "Analyzing document structure", True),
    PhaseDefinition(ProcessingPhase.TEXT_EXTRACTION, 5, "Extracting text", True),
    PhaseDefinition(ProcessingPhase.OCR_PROCESSING, 10, "Running OCR", True),
    PhaseDefinition(ProcessingPhase.POST_PROCESSING, 1, "Cleaning extracted text"),
    PhaseDefinition(ProcessingPhase.VALIDATION, 1, "Validating results"),
    PhaseDefinition(ProcessingPhase.COMPLETE, 0, "Complete"),
)

_DEFINITIONS = {d.phase: d for d in PHASE_DEFINITIONS}
_ORDER = {d.phase: index for index, d in enumerate(PHASE_DEFINITIONS)}
_TOTAL_WEIGHT = sum(d.weight for d in PHASE_DEFINITIONS)


@dataclass
class ProcessingProgress:
    phase: ProcessingPhase = ProcessingPhase.INITIALIZATION
    phase_percent: float = 0.0
    overall_percent: float = 0.0
    current_page: int = 0
    total_pages: int = 0
    eta_ms: int = 0
    pages_per_second: float = 0.0
    status: str = ""
    warnings: list[str] = field(default_factory=list)


ProgressSink = Callable[[ProcessingProgress], None]


class ProgressTracker:
    """Computes monotonic overall progress and hands snapshots to a sink.

    All state lives behind one lock. Snapshots are delivered on a single
    dispatcher thread through a latest-only slot: while the sink is busy,
    newer snapshots replace older undelivered ones, so a slow sink sees
    fewer updates but never holds up extraction.
    """

    def __init__(
        self,
        total_pages: int = 0,
        sink: ProgressSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = threading.Lock()
        self._clock = clock
        self._started_at = clock()
        self._pages_done = 0.0
        self._progress = ProcessingProgress(
            total_pages=total_pages, status=_DEFINITIONS[ProcessingPhase.INITIALIZATION].label
        )
        self._sink = sink
        self._slot_lock = threading.Lock()
        self._pending: ProcessingProgress | None = None
        self._draining = False
        self._closed = False
        self._dispatcher = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="progress-sink")
            if sink is not None
            else None
        )

    @property
    def phase(self) -> ProcessingPhase:
        with self._lock:
            return self._progress.phase

    def start_phase(self, phase: ProcessingPhase, status: str | None = None) -> None:
        """Enter a phase. Moving back to an earlier phase keeps the current one."""
        with self._lock:
            current = self._progress.phase
            if _ORDER[phase] < _ORDER[current]:
                Log.debug(f"Ignoring move back to {phase.value}; already in {current.value}")
                if status:
                    self._progress.status = status
            elif phase is not current:
                self._progress.phase = phase
                self._progress.phase_percent = 0.0
                self._progress.status = status or _DEFINITIONS[phase].label
            elif status:
                self._progress.status = status
            self._recompute()
            self._emit(self._snapshot())

    def update_progress(self, phase_percent: float, status: str | None = None) -> None:
        with self._lock:
            self._progress.phase_percent = _clamp(phase_percent)
            if status:
                self._progress.status = status
            self._recompute()
            self._emit(self._snapshot())

    def update_page_progress(
        self, page_number: int, page_progress: float = 0.0, status: str | None = None
    ) -> None:
        """Report progress within a page (page_progress in 0..100)."""
        self._apply_pages(page_number, (page_number - 1) + _clamp(page_progress) / 100, status)

    def update_work(self, completed: int, total: int, status: str | None = None) -> None:
        """Report `completed` of `total` work units (pages) finished."""
        if total > 0:
            with self._lock:
                self._progress.total_pages = total
        self._apply_pages(min(completed + 1, max(total, 1)), float(completed), status)

    def complete_phase(self, status: str | None = None) -> None:
        self.update_progress(100.0, status)

    def add_warning(self, warning: str) -> None:
        with self._lock:
            self._progress.warnings.append(warning)
            self._emit(self._snapshot())

    def set_total_pages(self, total_pages: int) -> None:
        with self._lock:
            self._progress.total_pages = max(0, total_pages)

    def complete(self, status: str = "Complete") -> None:
        with self._lock:
            self._progress.phase = ProcessingPhase.COMPLETE
            self._progress.phase_percent = 100.0
            self._progress.overall_percent = 100.0
            self._progress.eta_ms = 0
            self._progress.status = status
            self._emit(self._snapshot())

    def snapshot(self) -> ProcessingProgress:
        with self._lock:
            return self._snapshot()

    def statistics(self) -> dict[str, float | int]:
        with self._lock:
            elapsed = self._clock() - self._started_at
            pages_done = self._pages_done
            return {
                "total_time_ms": round(elapsed * 1000, 1),
                "average_page_time_ms": (
                    round(elapsed / pages_done * 1000, 1) if pages_done > 0 else 0.0
                ),
                "pages_per_second": self._progress.pages_per_second,
                "warning_count": len(self._progress.warnings),
            }

    def close(self, wait: bool = False) -> None:
        """Stop accepting updates.

        The latest undelivered snapshot still reaches the sink. With
        wait=False (the default) this returns without waiting for it.
        """
        if self._dispatcher is None:
            return
        with self._slot_lock:
            self._closed = True
        self._dispatcher.shutdown(wait=wait)

    def _apply_pages(self, page_number: int, pages_done: float, status: str | None) -> None:
        with self._lock:
            progress = self._progress
            progress.current_page = page_number
            self._pages_done = max(0.0, pages_done)
            if _DEFINITIONS[progress.phase].page_based and progress.total_pages > 0:
                progress.phase_percent = _clamp(self._pages_done / progress.total_pages * 100)

            elapsed = self._clock() - self._started_at
            rate = self._pages_done / elapsed if elapsed > 0 else 0.0
            progress.pages_per_second = rate
            remaining = max(0.0, progress.total_pages - self._pages_done)
            progress.eta_ms = int(remaining / rate * 1000) if rate > 0 else 0
            if status:
                progress.status = status
            self._recompute()
            self._emit(self._snapshot())

    def _recompute(self) -> None:
        progress = self._progress
        if progress.phase is ProcessingPhase.COMPLETE:
            overall = 100.0
        else:
            completed = sum(
                d.weight for d in PHASE_DEFINITIONS if _ORDER[d.phase] < _ORDER[progress.phase]
            )
            current = _DEFINITIONS[progress.phase].weight * progress.phase_percent / 100
            overall = (completed + current) / _TOTAL_WEIGHT * 100
        progress.overall_percent = max(progress.overall_percent, _clamp(overall))

    def _snapshot(self) -> ProcessingProgress:
        return replace(self._progress, warnings=list(self._progress.warnings))

    def _emit(self, snapshot: ProcessingProgress) -> None:
        # called with self._lock held so snapshots enter the slot in order
        if self._dispatcher is None:
            return
        with self._slot_lock:
            if self._closed:
                Log.debug("Progress update dropped after tracker was closed")
                return
            self._pending = snapshot
            if self._draining:
                return
            self._draining = True
        try:
            self._dispatcher.submit(self._drain)
        except RuntimeError:
            with self._slot_lock:
                self._draining = False
            Log.debug("Progress update dropped after tracker was closed")

    def _drain(self) -> None:
        while True:
            with self._slot_lock:
                snapshot = self._pending
                self._pending = None
                if snapshot is None:
                    self._draining = False
                    return
            self._deliver(snapshot)

    def _deliver(self, snapshot: ProcessingProgress) -> None:
        if self._sink is None:
            return
        try:
            self._sink(snapshot)
        except Exception as exc:
            Log.warning(f"Progress sink raised {type(exc).__name__}: {exc}")


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))
