"""Subscription interface for sensor events consumed by a live session.

The watch bridge that actually detects water entry lives outside this
package; it only has to push readings into a ``SubmersionSignal``.
"""

from __future__ import annotations

from typing import Callable, Protocol

from loguru import logger


SubmersionHandler = Callable[[], None]


class Subscription:
    """Handle returned by ``subscribe``; cancelling it twice is harmless."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def cancel(self) -> None:
        if self._cancel is None:
            return
        cancel, self._cancel = self._cancel, None
        cancel()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *_exc) -> None:
        self.cancel()


class SubmersionSource(Protocol):
    @property
    def is_submerged(self) -> bool: ...

    def subscribe(self, handler: SubmersionHandler) -> Subscription: ...


class SubmersionSignal:
    """In-process submersion source; handlers fire on each dry-to-wet edge."""

    def __init__(self, submerged: bool = False) -> None:
        self._submerged = submerged
        self._handlers: list[SubmersionHandler] = []

    @property
    def is_submerged(self) -> bool:
        return self._submerged

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: SubmersionHandler) -> Subscription:
        self._handlers.append(handler)
        return Subscription(lambda: self._unsubscribe(handler))

    def update(self, submerged: bool) -> None:
        entered_water = submerged and not self._submerged
        self._submerged = submerged
        if not entered_water:
            return
        logger.debug("Submersion detected, notifying {} handler(s)", len(self._handlers))
        for handler in list(self._handlers):
            handler()

    def _unsubscribe(self, handler: SubmersionHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)
