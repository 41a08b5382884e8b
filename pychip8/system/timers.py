"""Delay/sound timer countdown running at a fixed 60 Hz."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from pychip8.cpu import MachineState
from pychip8.utils import debug_enabled, debug_log

from .sync import MachineGuard

TIMER_FREQUENCY_HZ = 60

AudioCallback = Callable[[bool], None]

# After a stall longer than this many periods the schedule is rebased
# instead of firing a burst of catch-up ticks.
_MAX_LAG_TICKS = 4


def tick(state: MachineState) -> int:
    """Count both timers down by one, stopping at zero.

    Returns the resulting sound timer; a nonzero value means the tone
    should be audible.
    """

    if state.delay_timer > 0:
        state.delay_timer -= 1
    if state.sound_timer > 0:
        state.sound_timer -= 1
    return state.sound_timer


class TimerTicker:
    """Background thread applying :func:`tick` under the machine guard.

    The guard is held only for the decrement. The audio callback runs after
    the guard is released and only when the play/mute decision changes;
    a separate audio lock orders those decisions by tick sequence so a
    stale result from a slower thread never reaches the callback.
    """

    def __init__(
        self,
        guard: MachineGuard,
        *,
        frequency_hz: float = TIMER_FREQUENCY_HZ,
        audio_callback: Optional[AudioCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if frequency_hz <= 0:
            raise ValueError("timer frequency must be positive")
        self._guard = guard
        self._interval = 1.0 / frequency_hz
        self._audio_callback = audio_callback
        self._clock = clock
        self._audio_lock = threading.Lock()
        self._audio_playing = False
        self._audio_sequence = 0
        self._tick_count = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def audio_playing(self) -> bool:
        return self._audio_playing

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick_once(self) -> int:
        """Apply one tick synchronously and update the audio state."""

        with self._guard as state:
            sound_timer, sequence = self._apply_tick(state)
        self._update_audio(sequence, sound_timer)
        return sound_timer

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, name="Chip8Timers", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 0.5) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        with self._audio_lock:
            if self._audio_playing:
                self._audio_playing = False
                if self._audio_callback is not None:
                    self._audio_callback(False)

    # ------------------------------------------------------------------
    # Internals

    def _apply_tick(self, state: MachineState) -> tuple[int, int]:
        # Caller holds the guard.
        sound_timer = tick(state)
        self._tick_count += 1
        return sound_timer, self._tick_count

    def _update_audio(self, sequence: int, sound_timer: int) -> None:
        playing = sound_timer > 0
        with self._audio_lock:
            if sequence < self._audio_sequence:
                return
            self._audio_sequence = sequence
            if playing == self._audio_playing:
                return
            self._audio_playing = playing
            if debug_enabled("audio"):
                debug_log("audio", "tone=%s sound_timer=%d", "on" if playing else "off", sound_timer)
            if self._audio_callback is not None:
                self._audio_callback(playing)

    def _run_loop(self) -> None:
        next_deadline = self._clock() + self._interval
        while not self._stop.is_set():
            delay = next_deadline - self._clock()
            if delay > 0 and self._stop.wait(delay):
                break

            while not self._guard.acquire(timeout=self._interval):
                if self._stop.is_set():
                    return
            try:
                sound_timer, sequence = self._apply_tick(self._guard.state)
            finally:
                self._guard.release()
            self._update_audio(sequence, sound_timer)

            next_deadline += self._interval
            lag = self._clock() - next_deadline
            if lag > self._interval * _MAX_LAG_TICKS:
                if debug_enabled("timer"):
                    debug_log("timer", "rebase lag_ms=%.1f", lag * 1000.0)
                next_deadline = self._clock() + self._interval


__all__ = ["TIMER_FREQUENCY_HZ", "TimerTicker", "tick"]
