from __future__ import annotations

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from tetratrack.core.app_state import AppState
from tetratrack.core.controller import SessionSnapshot
from tetratrack.core.errors import SessionConfigError
from tetratrack.core.events import SessionState
from tetratrack.core.milestones import Milestone
from tetratrack.core.phases import PhaseMetric, PhaseTransition
from tetratrack.core.sensors import SubmersionSignal
from tetratrack.core.settings import SessionKind
from tetratrack.core.ticker import QtTicker


KIND_LABELS = {
    SessionKind.SWIM_TEST: "Swim: 3-minute test",
    SessionKind.SWIM_INTERVALS: "Swim: intervals",
    SessionKind.FREE_SWIM: "Swim: free",
    SessionKind.OPEN_WATER_SWIM: "Swim: open water",
    SessionKind.RUN_INTERVALS: "Run: intervals",
    SessionKind.FREE_RUN: "Run: free",
    SessionKind.SHOOTING_DRILL: "Shooting: timed card",
}


def format_clock(seconds: float | None) -> str:
    if seconds is None:
        return "--:--"
    total = max(0, int(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


def format_milestone(milestone: Milestone) -> str:
    if milestone.metric == PhaseMetric.DISTANCE:
        return f"{milestone.kind.value} at {milestone.threshold:.0f} m"
    return f"{milestone.kind.value} at {format_clock(milestone.threshold)}"


class MainWindow(QMainWindow):
    def __init__(self, app_state: AppState) -> None:
        super().__init__()
        self.setWindowTitle("TetraTrack Session")
        self.resize(720, 480)

        self.app_state = app_state
        self.ticker = QtTicker(parent=self)
        self.submersion = SubmersionSignal()

        self._build_ui()
        self._connect_signals()
        self._sync_kind_from_state()
        self._update_buttons()

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)
        root_layout = QHBoxLayout(central)

        left_layout = QVBoxLayout()
        self.kind_combo = QComboBox()
        for kind, label in KIND_LABELS.items():
            self.kind_combo.addItem(label, kind.value)
        left_layout.addWidget(self.kind_combo)

        self.phase_label = QLabel("READY")
        self.phase_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.clock_label = QLabel("00:00")
        self.clock_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 1000)
        left_layout.addWidget(self.phase_label)
        left_layout.addWidget(self.clock_label, 1)
        left_layout.addWidget(self.progress_bar)

        stats_box = QWidget()
        stats_form = QFormLayout(stats_box)
        self.remaining_label = QLabel("--:--")
        self.interval_label = QLabel("-")
        self.distance_label = QLabel("0 m")
        self.pace_label = QLabel("--:--")
        stats_form.addRow("Remaining:", self.remaining_label)
        stats_form.addRow("Interval:", self.interval_label)
        stats_form.addRow("Distance in phase:", self.distance_label)
        stats_form.addRow("Pace:", self.pace_label)
        left_layout.addWidget(stats_box)

        controls = QHBoxLayout()
        self.start_btn = QPushButton("Start")
        self.water_btn = QPushButton("Water entry")
        self.length_btn = QPushButton("+25 m")
        self.pause_btn = QPushButton("Pause")
        self.resume_btn = QPushButton("Resume")
        self.stop_btn = QPushButton("Stop")
        self.discard_btn = QPushButton("Discard")
        for button in (
            self.start_btn,
            self.water_btn,
            self.length_btn,
            self.pause_btn,
            self.resume_btn,
            self.stop_btn,
            self.discard_btn,
        ):
            controls.addWidget(button)
        left_layout.addLayout(controls)
        root_layout.addLayout(left_layout, 3)

        right_layout = QVBoxLayout()
        right_layout.addWidget(QLabel("Cues"))
        self.cue_list = QListWidget()
        right_layout.addWidget(self.cue_list, 1)
        root_layout.addLayout(right_layout, 1)

        space_action = QAction(self)
        space_action.setShortcut(QKeySequence(Qt.Key.Key_Space))
        space_action.triggered.connect(self._space_toggle)
        self.addAction(space_action)

    def _connect_signals(self) -> None:
        self.start_btn.clicked.connect(self.start_session)
        self.water_btn.clicked.connect(lambda: self.submersion.update(True))
        self.length_btn.clicked.connect(lambda: self.record_distance(25.0))
        self.pause_btn.clicked.connect(self.pause_session)
        self.resume_btn.clicked.connect(self.resume_session)
        self.stop_btn.clicked.connect(self.stop_session)
        self.discard_btn.clicked.connect(self.discard_session)
        self.kind_combo.currentIndexChanged.connect(self._on_kind_changed)
        self.app_state.session_kind_changed.connect(self._sync_kind_from_state)
        self.app_state.session_state_changed.connect(self._on_session_state)
        self.app_state.phase_changed.connect(self._on_phase_changed)
        self.app_state.milestone_reached.connect(self._on_milestone)
        self.app_state.cue_requested.connect(self.cue_list.addItem)
        self.app_state.snapshot_changed.connect(self._render_snapshot)
        self.ticker.ticked.connect(self._refresh)

    def _sync_kind_from_state(self, *_args) -> None:
        index = self.kind_combo.findData(self.app_state.selected_kind.value)
        if index >= 0 and index != self.kind_combo.currentIndex():
            self.kind_combo.setCurrentIndex(index)

    def _on_kind_changed(self) -> None:
        self.app_state.set_session_kind(self.kind_combo.currentData())

    def _space_toggle(self) -> None:
        session = self.app_state.current_session
        if session is None or not session.is_active:
            self.start_session()
        elif session.state == SessionState.RUNNING:
            self.pause_session()
        elif session.state == SessionState.PAUSED:
            self.resume_session()

    def start_session(self) -> None:
        # Start dry; the water-entry button stands in for the watch sensor.
        self.submersion.update(False)
        self.cue_list.clear()
        try:
            session = self.app_state.create_session(ticker=self.ticker, submersion=self.submersion)
        except (RuntimeError, SessionConfigError) as exc:
            QMessageBox.information(self, "Session", str(exc))
            return
        session.start()
        self._refresh()

    def record_distance(self, meters: float) -> None:
        session = self.app_state.current_session
        if session is None:
            return
        session.add_distance(meters)
        self._refresh()

    def pause_session(self) -> None:
        if self.app_state.current_session is not None:
            self.app_state.current_session.pause()
            self._refresh()

    def resume_session(self) -> None:
        if self.app_state.current_session is not None:
            self.app_state.current_session.resume()
            self._refresh()

    def stop_session(self) -> None:
        if self.app_state.current_session is not None:
            self.app_state.current_session.stop()
            self._refresh()

    def discard_session(self) -> None:
        if self.app_state.current_session is not None:
            self.app_state.current_session.discard()
            self._refresh()

    def _refresh(self) -> None:
        session = self.app_state.current_session
        if session is not None:
            self.app_state.update_snapshot(session.snapshot())
        self._update_buttons()

    def _render_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.phase_label.setText(snapshot.phase.value.upper())
        self.clock_label.setText(format_clock(snapshot.elapsed_seconds))
        self.remaining_label.setText(format_clock(snapshot.remaining_in_phase))
        self.interval_label.setText(f"{snapshot.interval_index} / {snapshot.number_of_intervals}")
        self.distance_label.setText(f"{snapshot.distance_in_phase:.0f} m")
        self.pace_label.setText(format_clock(snapshot.pace))
        self.progress_bar.setValue(int(snapshot.progress * 1000))

    def _on_session_state(self, state: str) -> None:
        if state == SessionState.ARMED.value:
            self.phase_label.setText("WAITING FOR WATER")
        self._update_buttons()

    def _on_phase_changed(self, transition: PhaseTransition) -> None:
        self.statusBar().showMessage(
            f"{transition.from_kind.value} -> {transition.to_kind.value} (interval {transition.interval_index})",
            3000,
        )

    def _on_milestone(self, milestone: Milestone) -> None:
        self.statusBar().showMessage(format_milestone(milestone), 3000)

    def _update_buttons(self) -> None:
        session = self.app_state.current_session
        state = session.state if session is not None else SessionState.IDLE
        active = session is not None and session.is_active
        self.start_btn.setEnabled(not active)
        self.kind_combo.setEnabled(not active)
        self.water_btn.setEnabled(state == SessionState.ARMED)
        self.length_btn.setEnabled(state == SessionState.RUNNING)
        self.pause_btn.setEnabled(state == SessionState.RUNNING)
        self.resume_btn.setEnabled(state == SessionState.PAUSED)
        self.stop_btn.setEnabled(active)
        self.discard_btn.setEnabled(active)

    def closeEvent(self, event) -> None:  # noqa: N802
        session = self.app_state.current_session
        if session is not None and session.is_active:
            answer = QMessageBox.question(
                self,
                "Exit",
                "A session is active. Exit and discard it?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if answer == QMessageBox.StandardButton.Yes:
                self.app_state.clear_session()
                event.accept()
            else:
                event.ignore()
            return
        event.accept()
