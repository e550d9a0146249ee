from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from tetratrack.core.milestones import Milestone
from tetratrack.core.phases import PhaseTransition


class SessionState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"
    DISCARDED = "discarded"


TERMINAL_STATES = frozenset({SessionState.FINISHED, SessionState.DISCARDED})


@dataclass(frozen=True)
class StateChange:
    from_state: SessionState
    to_state: SessionState


SessionEvent = Union[PhaseTransition, Milestone, StateChange]
Notifier = Callable[[SessionEvent], None]
