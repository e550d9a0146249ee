import pytest

pytest.importorskip("PyQt6.QtCore")

from tetratrack.core.app_state import AppState
from tetratrack.core.clock import SessionClock
from tetratrack.core.events import SessionState
from tetratrack.core.settings import SessionKind
from tetratrack.data.storage import Storage


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_load_and_kind_persist(tmp_path) -> None:
    storage = Storage(tmp_path / "app.db")
    storage.init_db()

    state = AppState()
    state.load_from_storage(storage)
    state.set_session_kind("shooting_drill")

    again = AppState()
    again.load_from_storage(storage)
    assert again.selected_kind == SessionKind.SHOOTING_DRILL


def test_unknown_kind_falls_back_to_swim_test(tmp_path) -> None:
    storage = Storage(tmp_path / "app.db")
    storage.init_db()
    storage.set_setting("selected_kind", "forest")

    state = AppState()
    state.load_from_storage(storage)

    assert state.selected_kind == SessionKind.SWIM_TEST


def test_save_setting_persists_and_emits(tmp_path) -> None:
    storage = Storage(tmp_path / "app.db")
    storage.init_db()
    state = AppState()
    state.load_from_storage(storage)
    changes = []
    state.settings_changed.connect(lambda key, value: changes.append((key, value)))

    state.save_setting("swim_test_seconds", 240)

    again = AppState()
    again.load_from_storage(storage)
    assert again.timing.swim_test_seconds == 240
    assert changes == [("swim_test_seconds", 240)]


def test_session_events_are_forwarded_as_signals(tmp_path) -> None:
    state = AppState()
    state.set_session_kind(SessionKind.SWIM_TEST)
    fake_time = FakeTime()
    cues = []
    states = []
    milestones = []
    state.cue_requested.connect(cues.append)
    state.session_state_changed.connect(states.append)
    state.milestone_reached.connect(milestones.append)

    session = state.create_session(clock=SessionClock(time_source=fake_time))
    session.start()
    for second in range(1, 181):
        fake_time.now = float(second)
        state.update_snapshot(session.tick())

    assert states == ["running", "finished"]
    assert [m.threshold for m in milestones] == [60.0, 120.0, 170.0, 180.0]
    assert cues == ["milestone", "milestone", "urgent", "complete"]
    assert state.last_snapshot.state == SessionState.FINISHED


def test_create_session_refuses_while_active() -> None:
    state = AppState()
    fake_time = FakeTime()
    session = state.create_session(clock=SessionClock(time_source=fake_time))
    session.start()

    with pytest.raises(RuntimeError):
        state.create_session()

    state.clear_session()
    assert session.state == SessionState.DISCARDED
    assert state.current_session is None
    assert state.create_session() is not None
