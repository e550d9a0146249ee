from __future__ import annotations

import time
from typing import Callable


class SessionClock:
    """Pause-aware elapsed time for one live session, detached from any UI timer."""

    def __init__(self, time_source: Callable[[], float] = time.monotonic) -> None:
        self._time_source = time_source
        self._start_time: float | None = None
        self._paused_accumulated = 0.0
        self._last_pause_time: float | None = None
        self._stopped_elapsed: float | None = None
        self._last_reported = 0.0

    @property
    def is_running(self) -> bool:
        return self._start_time is not None and self._last_pause_time is None

    @property
    def is_paused(self) -> bool:
        return self._start_time is not None and self._last_pause_time is not None

    @property
    def is_stopped(self) -> bool:
        return self._stopped_elapsed is not None

    @property
    def paused_accumulated(self) -> float:
        return self._paused_accumulated

    def now(self) -> float:
        return self._time_source()

    def start(self, now: float | None = None) -> None:
        if self._start_time is not None:
            return
        if now is None:
            now = self.now()
        self._start_time = now
        self._paused_accumulated = 0.0
        self._last_pause_time = None
        self._stopped_elapsed = None
        self._last_reported = 0.0

    def pause(self, now: float | None = None) -> None:
        if not self.is_running:
            return
        if now is None:
            now = self.now()
        self._last_pause_time = now

    def resume(self, now: float | None = None) -> None:
        if not self.is_paused:
            return
        if now is None:
            now = self.now()
        self._paused_accumulated += max(0.0, now - self._last_pause_time)
        self._last_pause_time = None

    def stop(self, now: float | None = None) -> float:
        if self._stopped_elapsed is not None:
            return self._stopped_elapsed
        if self._start_time is None:
            return 0.0
        frozen = self.elapsed(now)
        self._stopped_elapsed = frozen
        self._start_time = None
        self._last_pause_time = None
        return frozen

    def elapsed(self, now: float | None = None) -> float:
        if self._stopped_elapsed is not None:
            return self._stopped_elapsed
        if self._start_time is None:
            return 0.0
        # While paused the reference instant is the pause itself.
        if self._last_pause_time is not None:
            now = self._last_pause_time
        elif now is None:
            now = self.now()
        raw = (now - self._start_time) - self._paused_accumulated
        # A backwards clock jump must never report negative progress.
        self._last_reported = max(self._last_reported, raw)
        return self._last_reported
