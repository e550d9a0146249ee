import pytest

from tetratrack.core.errors import SessionConfigError
from tetratrack.core.phases import (
    PhaseConfig,
    PhaseKind,
    PhaseState,
    PhaseTarget,
    advance,
    continuous_config,
    estimated_duration,
    first_phase,
    interval_config,
    phase_sequence,
    swim_interval_config,
    timed_config,
)


def test_full_interval_session_follows_transition_table() -> None:
    config = interval_config(
        work_seconds=60,
        rest_seconds=30,
        number_of_intervals=3,
        warmup_seconds=300,
        cooldown_seconds=300,
    )
    state = first_phase(config)
    kinds = [state.kind]
    highest_index = state.interval_index

    for progress in [300, 60, 30, 60, 30, 60, 300]:
        transition = advance(config, state, progress)
        assert transition is not None
        state = state.apply(transition)
        kinds.append(state.kind)
        highest_index = max(highest_index, state.interval_index)

    assert kinds == [
        PhaseKind.WARMUP,
        PhaseKind.WORK,
        PhaseKind.REST,
        PhaseKind.WORK,
        PhaseKind.REST,
        PhaseKind.WORK,
        PhaseKind.COOLDOWN,
        PhaseKind.FINISHED,
    ]
    assert state.interval_index == 3
    assert highest_index == 3


def test_advance_returns_none_before_target() -> None:
    config = interval_config(work_seconds=45, rest_seconds=15, number_of_intervals=2, warmup_seconds=None)
    state = first_phase(config)

    assert state.kind == PhaseKind.WORK
    assert advance(config, state, 44.9) is None
    assert advance(config, state.with_progress(44.0)) is None


def test_rest_to_work_increments_interval() -> None:
    config = interval_config(number_of_intervals=3, warmup_seconds=None)
    state = PhaseState(kind=PhaseKind.REST, interval_index=1)

    transition = advance(config, state, config.rest.amount)

    assert transition.to_kind == PhaseKind.WORK
    assert transition.interval_index_delta == 1
    assert transition.interval_index == 2


def test_single_interval_without_cooldown_finishes_after_work() -> None:
    config = timed_config(180)
    state = first_phase(config)

    transition = advance(config, state, 180)

    assert transition.from_kind == PhaseKind.WORK
    assert transition.to_kind == PhaseKind.FINISHED
    assert transition.is_terminal is True


def test_finished_is_terminal() -> None:
    config = timed_config(60)
    state = PhaseState(kind=PhaseKind.FINISHED)

    assert advance(config, state, 10_000) is None


def test_continuous_phase_never_transitions() -> None:
    config = continuous_config()
    state = first_phase(config)

    assert advance(config, state, 1_000_000) is None
    assert phase_sequence(config) == [state]
    assert estimated_duration(config) is None


def test_distance_gated_work_uses_meters() -> None:
    config = swim_interval_config(distance_meters=100, rest_seconds=30, number_of_intervals=4)
    state = first_phase(config)

    assert config.work.is_distance is True
    assert advance(config, state, 75) is None
    assert advance(config, state, 100).to_kind == PhaseKind.REST


def test_phase_sequence_skips_rest_after_last_interval() -> None:
    config = interval_config(work_seconds=45, rest_seconds=15, number_of_intervals=4, warmup_seconds=None, cooldown_seconds=None)

    kinds = [state.kind for state in phase_sequence(config)]

    assert kinds.count(PhaseKind.WORK) == 4
    assert kinds.count(PhaseKind.REST) == 3
    assert kinds[-2:] == [PhaseKind.WORK, PhaseKind.FINISHED]


def test_estimated_duration() -> None:
    intervals = interval_config(work_seconds=45, rest_seconds=15, number_of_intervals=4, warmup_seconds=None, cooldown_seconds=None)
    swim = swim_interval_config(distance_meters=100, rest_seconds=30, number_of_intervals=4)

    assert estimated_duration(intervals) == 225
    assert estimated_duration(swim, pace_per_100m=120) == 4 * 120 + 3 * 30
    assert estimated_duration(swim) is None


def test_phase_instance_increments_on_each_transition() -> None:
    config = interval_config(number_of_intervals=2, warmup_seconds=None, cooldown_seconds=None)

    instances = [state.phase_instance for state in phase_sequence(config)]

    assert instances == [0, 1, 2, 3]


@pytest.mark.parametrize(
    ("kwargs", "code"),
    [
        ({"work": PhaseTarget.seconds(60), "rest": PhaseTarget.seconds(30), "number_of_intervals": 0}, "INVALID_INTERVAL_COUNT"),
        ({"work": PhaseTarget.seconds(60), "number_of_intervals": 3}, "MISSING_REST"),
        ({"work": PhaseTarget.open_ended(), "cooldown": PhaseTarget.seconds(60)}, "INVALID_TARGET"),
        ({"work": PhaseTarget.seconds(60), "warmup": PhaseTarget.open_ended()}, "INVALID_TARGET"),
    ],
)
def test_invalid_configs_are_rejected(kwargs, code) -> None:
    with pytest.raises(SessionConfigError) as excinfo:
        PhaseConfig(**kwargs)

    assert excinfo.value.code == code


def test_non_positive_target_is_rejected() -> None:
    with pytest.raises(SessionConfigError) as excinfo:
        PhaseTarget.seconds(0)

    assert excinfo.value.code == "INVALID_TARGET"
    with pytest.raises(ValueError):
        PhaseTarget.meters(-25)


def test_interval_config_defaults_include_warmup_and_cooldown() -> None:
    config = interval_config()

    assert config.work.amount == 60
    assert config.rest.amount == 90
    assert config.number_of_intervals == 6
    assert config.warmup.amount == 300
    assert config.cooldown.amount == 300
    assert interval_config(warmup_seconds=None, cooldown_seconds=None).warmup is None
