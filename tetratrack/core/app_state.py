from __future__ import annotations

from dataclasses import replace
from typing import Any

from loguru import logger
from PyQt6.QtCore import QObject, pyqtSignal

from tetratrack.core.clock import SessionClock
from tetratrack.core.controller import SessionController, SessionSnapshot, Ticker
from tetratrack.core.cues import cue_for
from tetratrack.core.events import SessionEvent, StateChange
from tetratrack.core.milestones import Milestone
from tetratrack.core.phases import PhaseTransition
from tetratrack.core.sensors import SubmersionSource
from tetratrack.core.settings import (
    SELECTED_KIND_KEY,
    SessionKind,
    TimingSettings,
    build_plan,
    load_timing_settings,
    save_timing_settings,
)
from tetratrack.data.storage import Storage


class AppState(QObject):
    state_changed = pyqtSignal()
    settings_changed = pyqtSignal(str, object)
    session_kind_changed = pyqtSignal(str)
    session_state_changed = pyqtSignal(str)
    phase_changed = pyqtSignal(object)
    milestone_reached = pyqtSignal(object)
    cue_requested = pyqtSignal(str)
    snapshot_changed = pyqtSignal(object)

    def __init__(self) -> None:
        super().__init__()
        self.timing = TimingSettings()
        self.selected_kind = SessionKind.SWIM_TEST
        self.current_session: SessionController | None = None
        self.last_snapshot: SessionSnapshot | None = None
        self._storage: Storage | None = None

    def load_from_storage(self, storage: Storage) -> None:
        self._storage = storage
        self.timing = load_timing_settings(storage)
        self.selected_kind = self._normalize_kind(storage.get_setting(SELECTED_KIND_KEY, self.selected_kind.value))
        self.state_changed.emit()
        self.session_kind_changed.emit(self.selected_kind.value)

    def save_setting(self, key: str, value: Any) -> None:
        self.timing = replace(self.timing, **{key: value})
        if self._storage:
            save_timing_settings(self._storage, self.timing)
        self.settings_changed.emit(key, value)
        self.state_changed.emit()

    def set_session_kind(self, kind: SessionKind | str) -> None:
        self.selected_kind = self._normalize_kind(kind)
        if self._storage:
            self._storage.set_setting(SELECTED_KIND_KEY, self.selected_kind.value)
        self.session_kind_changed.emit(self.selected_kind.value)
        self.state_changed.emit()

    def create_session(
        self,
        ticker: Ticker | None = None,
        submersion: SubmersionSource | None = None,
        clock: SessionClock | None = None,
    ) -> SessionController:
        if self.current_session is not None and self.current_session.is_active:
            raise RuntimeError("A session is already active")
        plan = build_plan(self.selected_kind, self.timing)
        self.current_session = SessionController(
            plan.config,
            milestone_plans=plan.milestone_plans,
            clock=clock,
            ticker=ticker,
            notifier=self.on_session_event,
            submersion=submersion,
            arm_on_submersion=plan.arm_on_submersion,
            pace_unit_meters=plan.pace_unit_meters,
        )
        self.last_snapshot = None
        logger.info("Created {} session", self.selected_kind.value)
        self.state_changed.emit()
        return self.current_session

    def on_session_event(self, event: SessionEvent) -> None:
        if isinstance(event, StateChange):
            self.session_state_changed.emit(event.to_state.value)
        elif isinstance(event, PhaseTransition):
            self.phase_changed.emit(event)
        elif isinstance(event, Milestone):
            self.milestone_reached.emit(event)
        cue = cue_for(event)
        if cue is not None:
            self.cue_requested.emit(cue.value)

    def update_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.last_snapshot = snapshot
        self.snapshot_changed.emit(snapshot)

    def clear_session(self) -> None:
        if self.current_session is not None and self.current_session.is_active:
            self.current_session.discard()
        self.current_session = None
        self.last_snapshot = None
        self.state_changed.emit()

    def _normalize_kind(self, kind: Any) -> SessionKind:
        try:
            return SessionKind(kind)
        except ValueError:
            logger.warning("Unknown session kind {!r}, falling back to swim test", kind)
            return SessionKind.SWIM_TEST
