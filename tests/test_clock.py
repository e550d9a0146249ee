from tetratrack.core.clock import SessionClock


def test_elapsed_is_zero_before_start() -> None:
    clock = SessionClock()

    assert clock.elapsed(now=50.0) == 0.0
    assert clock.is_running is False


def test_elapsed_advances_while_running() -> None:
    clock = SessionClock()
    clock.start(now=100.0)

    assert clock.elapsed(now=100.0) == 0.0
    assert clock.elapsed(now=112.5) == 12.5
    assert clock.elapsed(now=130.0) == 30.0


def test_pause_freezes_and_resume_keeps_elapsed_stable() -> None:
    clock = SessionClock()
    clock.start(now=10.0)

    clock.pause(now=15.0)
    before = clock.elapsed(now=15.0)
    frozen = clock.elapsed(now=40.0)
    clock.resume(now=40.0)
    after = clock.elapsed(now=40.0)

    assert before == 5.0
    assert frozen == 5.0
    assert after == 5.0
    assert clock.elapsed(now=42.0) == 7.0
    assert clock.paused_accumulated == 25.0


def test_out_of_order_calls_are_ignored() -> None:
    clock = SessionClock()
    clock.pause(now=1.0)
    clock.resume(now=2.0)
    clock.start(now=10.0)
    clock.resume(now=12.0)
    clock.pause(now=14.0)
    clock.pause(now=20.0)
    clock.start(now=30.0)

    assert clock.is_paused is True
    assert clock.elapsed(now=50.0) == 4.0


def test_stop_is_idempotent_and_frozen() -> None:
    clock = SessionClock()
    clock.start(now=0.0)

    first = clock.stop(now=30.0)
    second = clock.stop(now=45.0)

    assert first == 30.0
    assert second == 30.0
    assert clock.elapsed(now=100.0) == 30.0
    assert clock.is_stopped is True


def test_start_after_stop_begins_new_run() -> None:
    clock = SessionClock()
    clock.start(now=0.0)
    clock.stop(now=30.0)

    clock.start(now=100.0)

    assert clock.is_stopped is False
    assert clock.elapsed(now=105.0) == 5.0


def test_backward_clock_jump_never_reports_less_progress() -> None:
    clock = SessionClock()
    clock.start(now=100.0)

    assert clock.elapsed(now=110.0) == 10.0
    assert clock.elapsed(now=105.0) == 10.0
    assert clock.elapsed(now=111.0) == 11.0


def test_injected_time_source_is_used_without_explicit_now() -> None:
    ticks = iter([5.0, 8.0, 20.0])
    clock = SessionClock(time_source=lambda: next(ticks))

    clock.start()
    assert clock.elapsed() == 3.0
    assert clock.elapsed() == 15.0
