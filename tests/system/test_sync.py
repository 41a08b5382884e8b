from __future__ import annotations

import threading

from pychip8.cpu import MachineState
from pychip8.system import MachineGuard


def test_context_manager_hands_out_shared_state() -> None:
    state = MachineState()
    guard = MachineGuard(state)

    with guard as held:
        assert held is state
        assert guard.locked()

    assert not guard.locked()


def test_acquire_times_out_while_other_thread_holds() -> None:
    guard = MachineGuard(MachineState())
    holding = threading.Event()
    release = threading.Event()

    def hold() -> None:
        with guard:
            holding.set()
            release.wait(2.0)

    worker = threading.Thread(target=hold)
    worker.start()
    try:
        assert holding.wait(2.0)
        assert guard.acquire(timeout=0.01) is False
        assert guard.locked()
    finally:
        release.set()
        worker.join(2.0)

    assert guard.acquire(timeout=0.5) is True
    guard.release()


def test_guard_is_released_on_exception() -> None:
    guard = MachineGuard(MachineState())

    try:
        with guard:
            raise KeyError("boom")
    except KeyError:
        pass

    assert not guard.locked()
