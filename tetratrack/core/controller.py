from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass
from typing import Callable, Mapping, Protocol

from loguru import logger

from tetratrack.core.clock import SessionClock
from tetratrack.core.events import TERMINAL_STATES, Notifier, SessionEvent, SessionState, StateChange
from tetratrack.core.milestones import SILENT_PLAN, MilestoneDetector, MilestonePlan
from tetratrack.core.phases import PhaseConfig, PhaseKind, PhaseState, PhaseTarget, advance, first_phase
from tetratrack.core.sensors import SubmersionSource, Subscription


class Ticker(Protocol):
    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


@dataclass(frozen=True)
class SessionSnapshot:
    state: SessionState
    phase: PhaseKind
    interval_index: int
    number_of_intervals: int
    elapsed_seconds: float
    phase_elapsed_seconds: float
    remaining_in_phase: float | None
    distance_in_phase: float
    total_distance: float
    pace: float | None
    progress: float


class SessionController:
    """Drives one live session: clock, phase table and milestones on a single tick.

    All public methods must be called from the same execution context as the
    ticker callback; nothing here locks.
    """

    def __init__(
        self,
        config: PhaseConfig,
        milestone_plans: Mapping[PhaseKind, MilestonePlan] | None = None,
        clock: SessionClock | None = None,
        ticker: Ticker | None = None,
        notifier: Notifier | None = None,
        submersion: SubmersionSource | None = None,
        arm_on_submersion: bool = False,
        pace_unit_meters: float = 100.0,
    ) -> None:
        self.config = config
        self._plans = dict(milestone_plans or {})
        self._clock = clock or SessionClock()
        self._ticker = ticker
        self._notifier = notifier
        self._submersion = submersion
        self._arm_on_submersion = arm_on_submersion
        self._pace_unit_meters = pace_unit_meters

        self._state = SessionState.IDLE
        self._phase = first_phase(config)
        self._phase_started_at = 0.0
        self._last_elapsed = 0.0
        self._final_elapsed: float | None = None
        self._distance_in_phase = 0.0
        self._total_distance = 0.0
        self._ticking = False
        self._detector = MilestoneDetector()
        self._resources = ExitStack()
        self._arming: ExitStack | None = None
        self._submersion_subscription: Subscription | None = None
        self._resources.callback(self._release_submersion)

    def __enter__(self) -> SessionController:
        return self

    def __exit__(self, exc_type, _exc, _tb) -> None:
        if exc_type is not None:
            self.discard()
        else:
            self.stop()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> PhaseState:
        return self._phase

    @property
    def phase_kind(self) -> PhaseKind:
        return self._phase.kind

    @property
    def interval_index(self) -> int:
        return self._phase.interval_index

    @property
    def distance_in_phase(self) -> float:
        return self._distance_in_phase

    @property
    def total_distance(self) -> float:
        return self._total_distance

    @property
    def is_active(self) -> bool:
        return self._state in {SessionState.ARMED, SessionState.RUNNING, SessionState.PAUSED}

    def start(self, now: float | None = None) -> None:
        if self._state != SessionState.IDLE:
            logger.debug("Ignoring start in state {}", self._state.value)
            return
        if not self._arm_on_submersion:
            self._begin_running(now)
            return
        self._set_state(SessionState.ARMED)
        if self._submersion is None:
            return
        self._arming = ExitStack()
        self._submersion_subscription = self._arming.enter_context(
            self._submersion.subscribe(self._on_submersion)
        )
        # Already in the water when start was tapped.
        if self._submersion.is_submerged:
            self.trigger_armed_start(now)

    def trigger_armed_start(self, now: float | None = None) -> None:
        if self._state != SessionState.ARMED:
            logger.debug("Ignoring armed start in state {}", self._state.value)
            return
        self._release_submersion()
        self._begin_running(now)

    def cancel_arming(self) -> None:
        if self._state != SessionState.ARMED:
            return
        self._release_submersion()
        self._set_state(SessionState.IDLE)

    def pause(self, now: float | None = None) -> None:
        if self._state != SessionState.RUNNING:
            logger.debug("Ignoring pause in state {}", self._state.value)
            return
        self._advance_to(self._clock.elapsed(now), now)
        if self._state != SessionState.RUNNING:
            return
        self._clock.pause(now)
        self._set_state(SessionState.PAUSED)

    def resume(self, now: float | None = None) -> None:
        if self._state != SessionState.PAUSED:
            logger.debug("Ignoring resume in state {}", self._state.value)
            return
        self._clock.resume(now)
        self._set_state(SessionState.RUNNING)

    def tick(self, now: float | None = None) -> SessionSnapshot:
        if self._state == SessionState.RUNNING:
            self._advance_to(self._clock.elapsed(now), now)
        return self.snapshot(now)

    def add_distance(self, meters: float, now: float | None = None) -> None:
        if meters < 0:
            raise ValueError("Distance cannot be negative")
        if self._state != SessionState.RUNNING:
            logger.debug("Ignoring {}m recorded in state {}", meters, self._state.value)
            return
        elapsed = self._clock.elapsed(now)
        # Time-gated phases that already ended are closed before the distance lands.
        self._advance_to(elapsed, now)
        if self._state != SessionState.RUNNING:
            return
        self._distance_in_phase += meters
        self._total_distance += meters
        self._advance_to(elapsed, now)

    def stop(self, now: float | None = None) -> None:
        if self._state in TERMINAL_STATES:
            return
        if self._state == SessionState.IDLE:
            return
        if self._state == SessionState.ARMED:
            self.cancel_arming()
            return
        if self._state == SessionState.RUNNING:
            # Boundaries crossed since the last tick still fire before the freeze.
            self._advance_to(self._clock.elapsed(now), now)
            if self._state in TERMINAL_STATES:
                return
        self._final_elapsed = self._clock.elapsed(now)
        self._teardown(now)
        self._set_state(SessionState.FINISHED)

    def discard(self, now: float | None = None) -> None:
        if self._state in TERMINAL_STATES:
            return
        self._final_elapsed = self._clock.elapsed(now)
        self._teardown(now)
        self._set_state(SessionState.DISCARDED)

    def elapsed(self, now: float | None = None) -> float:
        if self._final_elapsed is not None:
            return self._final_elapsed
        return self._clock.elapsed(now)

    def remaining_in_phase(self, now: float | None = None) -> float | None:
        target = self._current_target()
        if target is None or target.is_open_ended or target.is_distance:
            return None
        return max(0.0, target.amount - self._phase_elapsed(now))

    def remaining_distance_in_phase(self) -> float | None:
        target = self._current_target()
        if target is None or not target.is_distance:
            return None
        return max(0.0, target.amount - self._distance_in_phase)

    def pace(self, now: float | None = None) -> float | None:
        """Seconds per ``pace_unit_meters`` over the whole session."""
        elapsed = self.elapsed(now)
        if self._total_distance <= 0 or elapsed <= 0:
            return None
        return elapsed / (self._total_distance / self._pace_unit_meters)

    def snapshot(self, now: float | None = None) -> SessionSnapshot:
        target = self._current_target()
        phase_elapsed = self._phase_elapsed(now)
        progress = 0.0
        if target is not None and not target.is_open_ended:
            done = self._distance_in_phase if target.is_distance else phase_elapsed
            progress = max(0.0, min(1.0, done / target.amount))
        elif self._phase.is_finished:
            progress = 1.0
        return SessionSnapshot(
            state=self._state,
            phase=self._phase.kind,
            interval_index=self._phase.interval_index,
            number_of_intervals=self.config.number_of_intervals,
            elapsed_seconds=self.elapsed(now),
            phase_elapsed_seconds=phase_elapsed,
            remaining_in_phase=self.remaining_in_phase(now),
            distance_in_phase=self._distance_in_phase,
            total_distance=self._total_distance,
            pace=self.pace(now),
            progress=progress,
        )

    def _on_submersion(self) -> None:
        self.trigger_armed_start()

    def _on_tick(self) -> None:
        self.tick()

    def _begin_running(self, now: float | None) -> None:
        self._clock.start(now)
        if self._ticker is not None:
            self._ticker.start(self._on_tick)
            self._ticking = True
        self._set_state(SessionState.RUNNING)

    def _advance_to(self, elapsed: float, now: float | None = None) -> None:
        while True:
            phase = self._phase
            target = self.config.target_for(phase.kind)
            time_target = target.amount if target is not None and not target.is_distance else None
            previous = max(0.0, self._last_elapsed - self._phase_started_at)
            current = max(0.0, elapsed - self._phase_started_at)

            plan = self._plans.get(phase.kind, SILENT_PLAN)
            for milestone in self._detector.detect(phase.phase_instance, previous, current, plan, time_target):
                logger.debug("Milestone {} at {:.0f}s ({})", milestone.kind.value, milestone.threshold, phase.kind.value)
                self._emit(milestone)

            progress = self._distance_in_phase if target is not None and target.is_distance else current
            transition = advance(self.config, phase, progress)
            if transition is None:
                self._phase = phase.with_progress(progress)
                self._last_elapsed = max(self._last_elapsed, elapsed)
                return

            boundary = self._phase_started_at + time_target if time_target is not None else elapsed
            if transition.is_terminal:
                completion = self._detector.completion(phase.phase_instance, target.amount, target.metric)
                if completion is not None:
                    self._emit(completion)
            logger.debug(
                "Phase {} -> {} (interval {})",
                transition.from_kind.value,
                transition.to_kind.value,
                transition.interval_index,
            )
            self._emit(transition)

            self._phase = phase.apply(transition)
            self._phase_started_at = boundary
            self._last_elapsed = boundary
            self._distance_in_phase = 0.0
            if transition.is_terminal:
                self._final_elapsed = boundary
                self._teardown(now)
                self._set_state(SessionState.FINISHED)
                return

    def _teardown(self, now: float | None = None) -> None:
        # No tick may land on a half torn down controller.
        if self._ticking and self._ticker is not None:
            self._ticker.stop()
            self._ticking = False
        self._clock.stop(now)
        self._resources.close()

    def _release_submersion(self) -> None:
        if self._arming is not None:
            self._arming.close()
            self._arming = None
        self._submersion_subscription = None

    def _current_target(self) -> PhaseTarget | None:
        return self.config.target_for(self._phase.kind)

    def _phase_elapsed(self, now: float | None) -> float:
        if self._phase.is_finished:
            return 0.0
        return max(0.0, self.elapsed(now) - self._phase_started_at)

    def _set_state(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        logger.info("Session {} -> {}", previous.value, state.value)
        self._emit(StateChange(previous, state))

    def _emit(self, event: SessionEvent) -> None:
        if self._notifier is not None:
            self._notifier(event)
