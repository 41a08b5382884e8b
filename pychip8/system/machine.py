"""CHIP-8 machine assembly."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from pychip8.cpu import Chip8CPU, MachineState

from .sync import MachineGuard


@dataclass
class MachineConfig:
    """Runtime configuration for the CHIP-8 machine."""

    rom_image: Optional[bytes] = None
    seed: Optional[int] = None
    rng: Optional[random.Random] = None
    strict_opcodes: bool = False


@dataclass
class Machine:
    """Aggregates the shared state, the engine that mutates it and its guard."""

    state: MachineState
    cpu: Chip8CPU
    guard: MachineGuard


def create_machine(config: MachineConfig | None = None) -> Machine:
    """Instantiate a CHIP-8 machine with the requested configuration."""

    config = config or MachineConfig()

    state = MachineState()
    if config.rom_image:
        state.load_program(config.rom_image)

    rng = config.rng if config.rng is not None else random.Random(config.seed)
    cpu = Chip8CPU(state, rng=rng, strict_illegal=config.strict_opcodes)
    guard = MachineGuard(state)

    return Machine(state=state, cpu=cpu, guard=guard)
