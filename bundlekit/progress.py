"""Phase status and timing for one build."""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import structlog

log = structlog.get_logger("bundlekit.build")

BUILD_PHASES = ("clean", "dependencies", "resources", "licenses", "package")


@dataclass
class PhaseProgress:
    phase: str
    status: str = "pending"  # "pending" | "running" | "completed" | "failed" | "skipped"
    start_time: float | None = None
    end_time: float | None = None
    detail: str = ""
    error: str | None = None

    @property
    def duration(self) -> float | None:
        if self.start_time is not None and self.end_time is not None:
            return round(self.end_time - self.start_time, 2)
        return None


class ProgressTracker:
    """Every planned phase starts out pending, so a failed build still shows
    which phases never ran."""

    def __init__(self, phases: Iterable[str] = BUILD_PHASES) -> None:
        self._phases: dict[str, PhaseProgress] = {name: PhaseProgress(name) for name in phases}

    @property
    def phases(self) -> list[PhaseProgress]:
        return list(self._phases.values())

    @property
    def failed(self) -> PhaseProgress | None:
        return next((p for p in self._phases.values() if p.status == "failed"), None)

    @contextmanager
    def track(self, phase: str) -> Iterator[PhaseProgress]:
        """Run one phase; the caller may set ``detail`` on the yielded record.

        An exception marks the phase failed and propagates.
        """
        p = self._phases.setdefault(phase, PhaseProgress(phase))
        p.status = "running"
        p.start_time = time.monotonic()
        log.debug("build.phase_started", phase=phase)
        try:
            yield p
        except BaseException as e:
            p.status = "failed"
            p.end_time = time.monotonic()
            p.error = str(e) or type(e).__name__
            log.error("build.phase_failed", phase=phase, error=p.error, duration=p.duration)
            raise
        p.status = "completed"
        p.end_time = time.monotonic()
        log.info("build.phase_completed", phase=phase, duration=p.duration, detail=p.detail)

    def skip(self, phase: str, reason: str) -> None:
        p = self._phases.setdefault(phase, PhaseProgress(phase))
        p.status = "skipped"
        p.detail = reason
        log.info("build.phase_skipped", phase=phase, reason=reason)

    def get_summary(self) -> dict[str, Any]:
        total_duration = sum(p.duration or 0 for p in self._phases.values())
        return {
            "phases": [
                {
                    "phase": p.phase,
                    "status": p.status,
                    "duration": p.duration,
                    "detail": p.detail,
                    "error": p.error,
                }
                for p in self._phases.values()
            ],
            "total_duration": round(total_duration, 2),
        }
