"""Cycle driver: paces instruction execution and talks to the frontend."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional, Protocol, Sequence

from pychip8.cpu import CPUError
from pychip8.cpu.opcodes import disassemble
from pychip8.utils import TraceRecorder, debug_enabled, debug_log, report_error
from pychip8.video import Framebuffer

from .machine import Machine

DEFAULT_INSTRUCTIONS_PER_SECOND = 300

_PERF_REPORT_CYCLES = 1000


class Frontend(Protocol):
    """I/O surface the cycle driver relies on."""

    def key_states(self) -> Sequence[bool]:
        ...

    def present(self, framebuffer: Framebuffer) -> None:
        ...

    def poll_events(self) -> bool:
        """Drain pending input; return ``True`` when quit was requested."""

    def wait_for_key(self, quit_event: threading.Event) -> Optional[int]:
        """Block until a keypad key goes down; ``None`` means quit."""


class CycleDriver:
    """Run the machine at a configured instruction rate until quit.

    Each iteration executes at most one instruction under the machine guard,
    then presents the display (if it changed), polls input and sleeps off
    the remainder of the cycle. The sleep waits on the quit event so a stop
    request is observed immediately.
    """

    def __init__(
        self,
        machine: Machine,
        frontend: Frontend,
        *,
        instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND,
        trace: TraceRecorder | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if instructions_per_second < 1:
            raise ValueError("instructions_per_second must be at least 1")
        self._machine = machine
        self._frontend = frontend
        self._cycle_time = 1.0 / instructions_per_second
        self._trace = trace
        self._clock = clock
        self._quit = threading.Event()
        self._perf_started: float | None = None
        self._perf_cycles = 0

    @property
    def quit_event(self) -> threading.Event:
        return self._quit

    def stop(self) -> None:
        self._quit.set()

    def run(self) -> None:
        self._frontend.present(self._machine.state.framebuffer)
        while self.step():
            pass

    def step(self) -> bool:
        """Run one driver iteration; return ``False`` once quit is requested."""

        if self._quit.is_set():
            return False
        started = self._clock()
        machine = self._machine

        # Only this thread executes instructions, so the pending register
        # cannot change between this check and the delivery below.
        if machine.state.pending_key_register is not None:
            key = self._frontend.wait_for_key(self._quit)
            if key is None:
                self._quit.set()
                return False
            with machine.guard:
                machine.cpu.deliver_key(key)
            return True

        with machine.guard as state:
            state.set_keys(self._frontend.key_states())
            self._execute()

        framebuffer = machine.state.framebuffer
        if framebuffer.consume():
            self._frontend.present(framebuffer)

        if self._frontend.poll_events():
            self._quit.set()
            return False

        self._throttle(started)
        return True

    # ------------------------------------------------------------------
    # Internals

    def _execute(self) -> None:
        machine = self._machine
        if self._trace is not None:
            opcode, _ = machine.cpu.peek()
            self._trace.record_step(machine.state, opcode, mnemonic=disassemble(opcode))
        try:
            machine.cpu.execute_one_cycle()
        except CPUError as exc:
            report_error("cpu", "%s", exc)
            if self._trace is not None:
                self._trace.dump("trace", limit=32)
            raise
        self._account_cycle()

    def _throttle(self, started: float) -> None:
        remaining = self._cycle_time - (self._clock() - started)
        if remaining > 0:
            self._quit.wait(remaining)

    def _account_cycle(self) -> None:
        if not debug_enabled("perf"):
            return
        now = self._clock()
        if self._perf_started is None:
            self._perf_started = now
            self._perf_cycles = 0
            return
        self._perf_cycles += 1
        if self._perf_cycles >= _PERF_REPORT_CYCLES:
            elapsed = now - self._perf_started
            if elapsed > 0:
                debug_log("perf", "instructions_per_second=%.1f", self._perf_cycles / elapsed)
            self._perf_started = now
            self._perf_cycles = 0


__all__ = ["CycleDriver", "DEFAULT_INSTRUCTIONS_PER_SECOND", "Frontend"]
