"""Synchronized door snapshot.

The reconciliation loop, confirmation tasks and the presentation layer
all read and write the same ``{current, target}`` pair.  Access goes
through get/set methods guarded by one lock; listeners are called
outside the lock after every write.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from garagebridge.models.door import DoorState, DoorStatus, TargetState

_logger = logging.getLogger(__name__)

SnapshotListener = Callable[[DoorStatus], None]


class DoorSnapshot:
    """Lock-guarded current/target door state.

    ``current`` and ``target`` are independent: an in-flight command
    legitimately leaves them different until it is confirmed.
    """

    def __init__(
        self,
        current: DoorState = DoorState.CLOSED,
        target: TargetState = TargetState.CLOSED,
    ) -> None:
        self._lock = threading.Lock()
        self._current = current
        self._target = target
        self._listeners: list[SnapshotListener] = []

    def get_current(self) -> DoorState:
        with self._lock:
            return self._current

    def get_target(self) -> TargetState:
        with self._lock:
            return self._target

    def read(self) -> DoorStatus:
        """Consistent view of both fields."""
        with self._lock:
            return DoorStatus(current=self._current, target=self._target)

    def set_current(self, state: DoorState) -> None:
        self.update(current=state)

    def set_target(self, target: TargetState) -> None:
        self.update(target=target)

    def update(
        self,
        *,
        current: DoorState | None = None,
        target: TargetState | None = None,
    ) -> DoorStatus:
        """Write one or both fields atomically and notify listeners.

        Listeners are notified on every write, changed or not, so a
        presentation layer holding an optimistic value gets corrected by
        the next observation.
        """
        with self._lock:
            previous = DoorStatus(current=self._current, target=self._target)
            if current is not None:
                self._current = current
            if target is not None:
                self._target = target
            status = DoorStatus(current=self._current, target=self._target)
            listeners = list(self._listeners)

        if status.current is not previous.current:
            _logger.info("Door state changed %s -> %s", previous.current, status.current)
        if status.target is not previous.target:
            _logger.debug("Door target changed %s -> %s", previous.target, status.target)

        for listener in listeners:
            try:
                listener(status)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)
        return status

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe
