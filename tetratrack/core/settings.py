"""User timing preferences and the session presets built from them."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any

from loguru import logger

from tetratrack.core.milestones import SILENT_PLAN, MilestonePlan
from tetratrack.core.phases import (
    PhaseConfig,
    PhaseKind,
    continuous_config,
    interval_config,
    swim_interval_config,
    timed_config,
)
from tetratrack.data.storage import Storage


SETTINGS_KEY = "timing"
SELECTED_KIND_KEY = "selected_kind"


class SessionKind(str, Enum):
    FREE_RUN = "free_run"
    RUN_INTERVALS = "run_intervals"
    SWIM_TEST = "swim_test"
    SWIM_INTERVALS = "swim_intervals"
    FREE_SWIM = "free_swim"
    OPEN_WATER_SWIM = "open_water_swim"
    SHOOTING_DRILL = "shooting_drill"


_OPTIONAL_FIELDS = frozenset({"run_warmup_seconds", "run_cooldown_seconds", "free_swim_target_seconds"})
_COUNT_FIELDS = frozenset({"run_intervals", "swim_intervals"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _check_value(name: str, value: Any) -> Any:
    """Return ``value`` in the field's type or raise ``TypeError``; ranges are checked by ``build_plan``."""
    if value is None:
        if name in _OPTIONAL_FIELDS:
            return None
        raise TypeError(name)
    if name == "rest_countdown":
        if not isinstance(value, (list, tuple)) or not all(_is_number(item) for item in value):
            raise TypeError(name)
        return tuple(value)
    if not _is_number(value):
        raise TypeError(name)
    if name in _COUNT_FIELDS:
        if not float(value).is_integer():
            raise TypeError(name)
        return int(value)
    return value


@dataclass(frozen=True)
class TimingSettings:
    run_work_seconds: float = 60
    run_rest_seconds: float = 90
    run_intervals: int = 6
    run_warmup_seconds: float | None = 300
    run_cooldown_seconds: float | None = 300
    swim_test_seconds: float = 180
    swim_test_warning_seconds: float = 10
    swim_interval_meters: float = 100
    swim_rest_seconds: float = 30
    swim_intervals: int = 4
    swim_target_pace: float = 120
    free_swim_target_seconds: float | None = None
    free_swim_mark_seconds: float = 300
    free_swim_warning_seconds: float = 60
    open_swim_mark_seconds: float = 600
    free_run_mark_seconds: float = 60
    rest_countdown: tuple[float, ...] = (5, 3)
    shooting_drill_seconds: float = 60
    shooting_warning_seconds: float = 15

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TimingSettings:
        known = {field.name for field in fields(cls)}
        values = {key: value for key, value in raw.items() if key in known}
        unknown = sorted(set(raw) - known)
        if unknown:
            logger.warning("Ignoring unknown timing settings: {}", ", ".join(unknown))
        checked = {}
        for key, value in values.items():
            try:
                checked[key] = _check_value(key, value)
            except TypeError:
                logger.warning("Stored timing setting {}={!r} has the wrong type, using default", key, value)
        return cls(**checked)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["rest_countdown"] = list(self.rest_countdown)
        return data


@dataclass(frozen=True)
class SessionPlan:
    kind: SessionKind
    config: PhaseConfig
    milestone_plans: dict[PhaseKind, MilestonePlan]
    arm_on_submersion: bool = False
    pace_unit_meters: float = 100.0


def build_plan(kind: SessionKind, settings: TimingSettings) -> SessionPlan:
    """Translate preferences into a validated phase config and milestone plans."""
    rest_plan = MilestonePlan(mark_every=None, countdown=settings.rest_countdown)

    if kind == SessionKind.RUN_INTERVALS:
        config = interval_config(
            work_seconds=settings.run_work_seconds,
            rest_seconds=settings.run_rest_seconds,
            number_of_intervals=settings.run_intervals,
            warmup_seconds=settings.run_warmup_seconds,
            cooldown_seconds=settings.run_cooldown_seconds,
        )
        return SessionPlan(kind, config, {PhaseKind.REST: rest_plan}, pace_unit_meters=1000.0)

    if kind == SessionKind.FREE_RUN:
        plans = {PhaseKind.WORK: MilestonePlan(mark_every=settings.free_run_mark_seconds)}
        return SessionPlan(kind, continuous_config(), plans, pace_unit_meters=1000.0)

    if kind == SessionKind.SWIM_TEST:
        plans = {PhaseKind.WORK: MilestonePlan(mark_every=60, warning_window=settings.swim_test_warning_seconds)}
        return SessionPlan(kind, timed_config(settings.swim_test_seconds), plans)

    if kind == SessionKind.SWIM_INTERVALS:
        config = swim_interval_config(
            distance_meters=settings.swim_interval_meters,
            rest_seconds=settings.swim_rest_seconds,
            number_of_intervals=settings.swim_intervals,
        )
        return SessionPlan(kind, config, {PhaseKind.WORK: SILENT_PLAN, PhaseKind.REST: rest_plan})

    if kind == SessionKind.FREE_SWIM:
        if settings.free_swim_target_seconds is None:
            plans = {PhaseKind.WORK: MilestonePlan(mark_every=settings.open_swim_mark_seconds)}
            return SessionPlan(kind, continuous_config(), plans)
        plans = {
            PhaseKind.WORK: MilestonePlan(
                mark_every=settings.free_swim_mark_seconds,
                warning_window=settings.free_swim_warning_seconds,
            )
        }
        return SessionPlan(kind, timed_config(settings.free_swim_target_seconds), plans)

    if kind == SessionKind.OPEN_WATER_SWIM:
        plans = {PhaseKind.WORK: MilestonePlan(mark_every=settings.open_swim_mark_seconds)}
        return SessionPlan(kind, continuous_config(), plans, arm_on_submersion=True)

    if kind == SessionKind.SHOOTING_DRILL:
        plans = {PhaseKind.WORK: MilestonePlan(mark_every=None, warning_window=settings.shooting_warning_seconds)}
        return SessionPlan(kind, timed_config(settings.shooting_drill_seconds), plans)

    raise ValueError(f"Unknown session kind: {kind}")


def load_timing_settings(storage: Storage) -> TimingSettings:
    raw = storage.get_setting(SETTINGS_KEY, {})
    if not isinstance(raw, dict):
        logger.warning("Stored timing settings are not a mapping, using defaults")
        return TimingSettings()
    return TimingSettings.from_dict(raw)


def save_timing_settings(storage: Storage, settings: TimingSettings) -> None:
    storage.set_setting(SETTINGS_KEY, settings.to_dict())
