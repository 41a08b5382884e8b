"""System composition: machine assembly, synchronisation and pacing."""

from .machine import Machine, MachineConfig, create_machine
from .runner import DEFAULT_INSTRUCTIONS_PER_SECOND, CycleDriver, Frontend
from .sync import MachineGuard
from .timers import TIMER_FREQUENCY_HZ, TimerTicker, tick

__all__ = [
    "CycleDriver",
    "DEFAULT_INSTRUCTIONS_PER_SECOND",
    "Frontend",
    "Machine",
    "MachineConfig",
    "MachineGuard",
    "TIMER_FREQUENCY_HZ",
    "TimerTicker",
    "create_machine",
    "tick",
]
