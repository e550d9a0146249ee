"""Mapping from session events to the haptic cues played on phone and watch."""

from __future__ import annotations

from enum import Enum

from tetratrack.core.events import SessionEvent, SessionState, StateChange
from tetratrack.core.milestones import Milestone, MilestoneKind
from tetratrack.core.phases import PhaseKind, PhaseTransition


class HapticCue(str, Enum):
    MILESTONE = "milestone"
    URGENT = "urgent"
    COMPLETE = "complete"
    REST_START = "rest_start"
    REST_END = "rest_end"
    ARMED_START = "armed_start"


_MILESTONE_CUES = {
    MilestoneKind.MINUTE_MARK: HapticCue.MILESTONE,
    MilestoneKind.LOW_TIME_WARNING: HapticCue.URGENT,
    MilestoneKind.COUNTDOWN: HapticCue.URGENT,
    MilestoneKind.COMPLETION: HapticCue.COMPLETE,
}


def cue_for(event: SessionEvent) -> HapticCue | None:
    if isinstance(event, Milestone):
        return _MILESTONE_CUES[event.kind]
    if isinstance(event, PhaseTransition):
        if event.to_kind == PhaseKind.REST:
            return HapticCue.REST_START
        if event.from_kind == PhaseKind.REST:
            return HapticCue.REST_END
        # Completion already carries its own cue.
        if event.is_terminal:
            return None
        return HapticCue.MILESTONE
    if isinstance(event, StateChange):
        if event.from_state == SessionState.ARMED and event.to_state == SessionState.RUNNING:
            return HapticCue.ARMED_START
    return None
