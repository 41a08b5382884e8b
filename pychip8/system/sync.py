"""Mutual exclusion between the cycle driver and the timer ticker."""

from __future__ import annotations

import threading

from pychip8.cpu import MachineState


class MachineGuard:
    """Owns the lock that serialises every access to a :class:`MachineState`.

    Entering the guard hands out the single shared state instance; the
    cycle driver holds it for a whole instruction and the ticker only for
    the timer decrement. ``acquire`` accepts a timeout so a thread that is
    shutting down can keep checking its stop flag instead of blocking.
    """

    def __init__(self, state: MachineState) -> None:
        self._state = state
        self._lock = threading.Lock()

    @property
    def state(self) -> MachineState:
        return self._state

    def acquire(self, timeout: float | None = None) -> bool:
        if timeout is None:
            acquired = self._lock.acquire()
        else:
            acquired = self._lock.acquire(timeout=max(timeout, 0.0))
        return acquired

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> MachineState:
        self.acquire()
        return self._state

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


__all__ = ["MachineGuard"]
