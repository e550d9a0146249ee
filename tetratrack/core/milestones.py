from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from tetratrack.core.errors import SessionConfigError
from tetratrack.core.phases import PhaseMetric


class MilestoneKind(str, Enum):
    MINUTE_MARK = "minute_mark"
    LOW_TIME_WARNING = "low_time_warning"
    COUNTDOWN = "countdown"
    COMPLETION = "completion"


@dataclass(frozen=True)
class Milestone:
    kind: MilestoneKind
    threshold: float
    phase_instance: int
    metric: PhaseMetric = PhaseMetric.TIME

    @property
    def key(self) -> tuple[int, MilestoneKind, float]:
        return (self.phase_instance, self.kind, self.threshold)


@dataclass(frozen=True)
class MilestonePlan:
    """Which boundaries of a phase are worth a cue.

    ``mark_every`` spaces the periodic marks (60s for the timed test, 300s for a
    free swim with a target, 600s for open-ended swims). ``warning_window`` and
    ``countdown`` are measured back from the phase target.
    """

    mark_every: float | None = 60.0
    warning_window: float | None = None
    countdown: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        details: list[str] = []
        if self.mark_every is not None and self.mark_every <= 0:
            details.append(f"mark_every must be positive, got {self.mark_every}")
        if self.warning_window is not None and self.warning_window <= 0:
            details.append(f"warning_window must be positive, got {self.warning_window}")
        details.extend(f"countdown second must be positive, got {s}" for s in self.countdown if s <= 0)
        if details:
            raise SessionConfigError("INVALID_MILESTONE_PLAN", details)

    def target_thresholds(self, target: float) -> list[tuple[MilestoneKind, float]]:
        thresholds: list[tuple[MilestoneKind, float]] = []
        if self.warning_window is not None and self.warning_window < target:
            thresholds.append((MilestoneKind.LOW_TIME_WARNING, target - self.warning_window))
        for seconds in self.countdown:
            if seconds < target:
                thresholds.append((MilestoneKind.COUNTDOWN, target - seconds))
        return thresholds


SILENT_PLAN = MilestonePlan(mark_every=None)


def check_crossing(previous: float, current: float, thresholds: Iterable[float]) -> list[float]:
    """Thresholds with ``previous < t <= current``, ascending."""
    return sorted({t for t in thresholds if previous < t <= current})


def marks_crossed(previous: float, current: float, every: float, limit: float | None = None) -> list[float]:
    """Multiples of ``every`` crossed between two samples, strictly below ``limit``."""
    if current <= previous:
        return []
    first = int(previous // every) + 1
    last = int(current // every)
    marks = [k * every for k in range(first, last + 1)]
    if limit is not None:
        marks = [mark for mark in marks if mark < limit]
    return marks


class MilestoneDetector:
    """At-most-once milestone emission per phase instance."""

    def __init__(self) -> None:
        self._fired: set[tuple[int, MilestoneKind, float]] = set()
        self._phase_instance: int | None = None

    @property
    def fired(self) -> frozenset[tuple[int, MilestoneKind, float]]:
        return frozenset(self._fired)

    def reset(self) -> None:
        self._fired.clear()
        self._phase_instance = None

    def detect(
        self,
        phase_instance: int,
        previous: float,
        current: float,
        plan: MilestonePlan,
        target: float | None = None,
    ) -> list[Milestone]:
        self._enter(phase_instance)
        candidates: list[Milestone] = []
        if plan.mark_every is not None:
            candidates.extend(
                Milestone(MilestoneKind.MINUTE_MARK, mark, phase_instance)
                for mark in marks_crossed(previous, current, plan.mark_every, limit=target)
            )
        if target is not None:
            for kind, threshold in plan.target_thresholds(target):
                if check_crossing(previous, current, [threshold]):
                    candidates.append(Milestone(kind, threshold, phase_instance))
        candidates.sort(key=lambda milestone: milestone.threshold)
        return [milestone for milestone in candidates if self._claim(milestone)]

    def completion(
        self,
        phase_instance: int,
        target: float,
        metric: PhaseMetric = PhaseMetric.TIME,
    ) -> Milestone | None:
        self._enter(phase_instance)
        milestone = Milestone(MilestoneKind.COMPLETION, target, phase_instance, metric)
        return milestone if self._claim(milestone) else None

    def _enter(self, phase_instance: int) -> None:
        if phase_instance != self._phase_instance:
            self._fired.clear()
            self._phase_instance = phase_instance

    def _claim(self, milestone: Milestone) -> bool:
        if milestone.key in self._fired:
            return False
        self._fired.add(milestone.key)
        return True
