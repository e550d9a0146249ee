"""Phase configuration and the pure phase-advancement table.

Running intervals, swim intervals and single timed efforts all share one
transition table; the only thing that differs between them is which phases
are configured and whether a phase is gated by time or by distance.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from tetratrack.core.errors import SessionConfigError


class PhaseKind(str, Enum):
    WARMUP = "warmup"
    WORK = "work"
    REST = "rest"
    COOLDOWN = "cooldown"
    FINISHED = "finished"


class PhaseMetric(str, Enum):
    TIME = "time"
    DISTANCE = "distance"


@dataclass(frozen=True)
class PhaseTarget:
    metric: PhaseMetric
    amount: float | None

    def __post_init__(self) -> None:
        if self.amount is not None and self.amount <= 0:
            raise SessionConfigError(
                "INVALID_TARGET",
                [f"{self.metric.value} target must be positive, got {self.amount}"],
            )

    @classmethod
    def seconds(cls, amount: float) -> PhaseTarget:
        return cls(PhaseMetric.TIME, float(amount))

    @classmethod
    def meters(cls, amount: float) -> PhaseTarget:
        return cls(PhaseMetric.DISTANCE, float(amount))

    @classmethod
    def open_ended(cls) -> PhaseTarget:
        return cls(PhaseMetric.TIME, None)

    @property
    def is_open_ended(self) -> bool:
        return self.amount is None

    @property
    def is_distance(self) -> bool:
        return self.metric == PhaseMetric.DISTANCE

    def is_reached(self, progress: float) -> bool:
        return self.amount is not None and progress >= self.amount


@dataclass(frozen=True)
class PhaseConfig:
    """Ordered phases of one session: optional warmup, work/rest repeats, optional cooldown."""

    work: PhaseTarget
    rest: PhaseTarget | None = None
    warmup: PhaseTarget | None = None
    cooldown: PhaseTarget | None = None
    number_of_intervals: int = 1

    def __post_init__(self) -> None:
        details: list[str] = []
        if self.number_of_intervals < 1:
            raise SessionConfigError(
                "INVALID_INTERVAL_COUNT",
                [f"number_of_intervals must be >= 1, got {self.number_of_intervals}"],
            )
        if self.number_of_intervals > 1 and self.rest is None:
            raise SessionConfigError(
                "MISSING_REST",
                [f"{self.number_of_intervals} intervals configured without a rest phase"],
            )
        for name in ("rest", "warmup", "cooldown"):
            target = getattr(self, name)
            if target is not None and target.is_open_ended:
                details.append(f"{name} phase needs a finite target")
        if self.work.is_open_ended and (self.is_structured or self.number_of_intervals > 1):
            details.append("open-ended work is only allowed for a single continuous phase")
        if details:
            raise SessionConfigError("INVALID_TARGET", details)

    @property
    def is_structured(self) -> bool:
        return self.warmup is not None or self.cooldown is not None or self.number_of_intervals > 1

    @property
    def is_open_ended(self) -> bool:
        return self.work.is_open_ended

    def target_for(self, kind: PhaseKind) -> PhaseTarget | None:
        if kind == PhaseKind.WARMUP:
            return self.warmup
        if kind == PhaseKind.WORK:
            return self.work
        if kind == PhaseKind.REST:
            return self.rest
        if kind == PhaseKind.COOLDOWN:
            return self.cooldown
        return None


@dataclass(frozen=True)
class PhaseTransition:
    from_kind: PhaseKind
    to_kind: PhaseKind
    interval_index_delta: int
    interval_index: int

    @property
    def is_terminal(self) -> bool:
        return self.to_kind == PhaseKind.FINISHED


@dataclass(frozen=True)
class PhaseState:
    kind: PhaseKind
    interval_index: int = 1
    phase_elapsed: float = 0.0
    phase_instance: int = 0

    @property
    def is_finished(self) -> bool:
        return self.kind == PhaseKind.FINISHED

    def with_progress(self, progress: float) -> PhaseState:
        return replace(self, phase_elapsed=progress)

    def apply(self, transition: PhaseTransition) -> PhaseState:
        return PhaseState(
            kind=transition.to_kind,
            interval_index=transition.interval_index,
            phase_elapsed=0.0,
            phase_instance=self.phase_instance + 1,
        )


def first_phase(config: PhaseConfig) -> PhaseState:
    kind = PhaseKind.WARMUP if config.warmup is not None else PhaseKind.WORK
    return PhaseState(kind=kind, interval_index=1)


def _next_phase(config: PhaseConfig, state: PhaseState) -> tuple[PhaseKind, int]:
    if state.kind == PhaseKind.WARMUP:
        return PhaseKind.WORK, 0
    if state.kind == PhaseKind.WORK:
        if state.interval_index < config.number_of_intervals:
            return PhaseKind.REST, 0
        if config.cooldown is not None:
            return PhaseKind.COOLDOWN, 0
        return PhaseKind.FINISHED, 0
    if state.kind == PhaseKind.REST:
        return PhaseKind.WORK, 1
    return PhaseKind.FINISHED, 0


def advance(config: PhaseConfig, state: PhaseState, progress: float | None = None) -> PhaseTransition | None:
    """Return the transition out of ``state`` once its target is reached, else ``None``.

    ``progress`` is elapsed seconds for time-gated phases and accumulated meters
    for distance-gated ones; it defaults to ``state.phase_elapsed``.
    """
    if state.is_finished:
        return None
    target = config.target_for(state.kind)
    if target is None:
        return None
    if progress is None:
        progress = state.phase_elapsed
    if not target.is_reached(progress):
        return None
    to_kind, delta = _next_phase(config, state)
    return PhaseTransition(
        from_kind=state.kind,
        to_kind=to_kind,
        interval_index_delta=delta,
        interval_index=state.interval_index + delta,
    )


def phase_sequence(config: PhaseConfig) -> list[PhaseState]:
    """Every phase the session will pass through, ending with ``finished``."""
    if config.is_open_ended:
        return [first_phase(config)]
    states = [first_phase(config)]
    while not states[-1].is_finished:
        current = states[-1]
        target = config.target_for(current.kind)
        transition = advance(config, current, target.amount if target else 0.0)
        if transition is None:
            break
        states.append(current.apply(transition))
    return states


def estimated_duration(config: PhaseConfig, pace_per_100m: float | None = None) -> float | None:
    """Planned total seconds; distance phases are converted with ``pace_per_100m``."""
    if config.is_open_ended:
        return None
    total = 0.0
    for state in phase_sequence(config):
        target = config.target_for(state.kind)
        if target is None:
            continue
        if target.is_distance:
            if pace_per_100m is None:
                return None
            total += pace_per_100m / 100 * target.amount
        else:
            total += target.amount
    return total


def interval_config(
    work_seconds: float = 60,
    rest_seconds: float = 90,
    number_of_intervals: int = 6,
    warmup_seconds: float | None = 300,
    cooldown_seconds: float | None = 300,
) -> PhaseConfig:
    return PhaseConfig(
        work=PhaseTarget.seconds(work_seconds),
        rest=PhaseTarget.seconds(rest_seconds),
        warmup=PhaseTarget.seconds(warmup_seconds) if warmup_seconds is not None else None,
        cooldown=PhaseTarget.seconds(cooldown_seconds) if cooldown_seconds is not None else None,
        number_of_intervals=number_of_intervals,
    )


def swim_interval_config(
    distance_meters: float = 100,
    rest_seconds: float = 30,
    number_of_intervals: int = 4,
) -> PhaseConfig:
    return PhaseConfig(
        work=PhaseTarget.meters(distance_meters),
        rest=PhaseTarget.seconds(rest_seconds),
        number_of_intervals=number_of_intervals,
    )


def timed_config(target_seconds: float = 180) -> PhaseConfig:
    return PhaseConfig(work=PhaseTarget.seconds(target_seconds))


def continuous_config() -> PhaseConfig:
    return PhaseConfig(work=PhaseTarget.open_ended())
