"""CPU package for the CHIP-8 interpreter."""

from .core import (
    Chip8CPU,
    CPUError,
    IllegalOpcodeError,
    StackOverflowError,
    StackUnderflowError,
    execute_one_cycle,
)
from .state import MachineState
from . import opcodes

__all__ = [
    "Chip8CPU",
    "MachineState",
    "CPUError",
    "IllegalOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "execute_one_cycle",
    "opcodes",
]
