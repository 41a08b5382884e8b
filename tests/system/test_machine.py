from __future__ import annotations

import random

from pychip8.system import MachineConfig, create_machine


def test_create_machine_loads_rom_and_shares_state() -> None:
    machine = create_machine(MachineConfig(rom_image=b"\x60\x2A"))

    assert machine.cpu.state is machine.state
    assert machine.guard.state is machine.state

    machine.cpu.execute_one_cycle()
    assert machine.state.registers_v[0] == 0x2A


def test_seed_makes_random_reproducible() -> None:
    values = []
    for _ in range(2):
        machine = create_machine(MachineConfig(rom_image=b"\xC0\xFF", seed=99))
        machine.cpu.execute_one_cycle()
        values.append(machine.state.registers_v[0])

    assert values[0] == values[1]


def test_explicit_rng_is_used() -> None:
    rng = random.Random(5)
    machine = create_machine(MachineConfig(rng=rng))

    assert machine.cpu.rng is rng


def test_strict_flag_reaches_engine() -> None:
    machine = create_machine(MachineConfig(strict_opcodes=True))

    assert machine.cpu.strict_illegal
