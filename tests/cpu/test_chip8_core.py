"""Tests for the CHIP-8 instruction engine."""

from __future__ import annotations

import random

import pytest

from pychip8.cpu import (
    Chip8CPU,
    IllegalOpcodeError,
    MachineState,
    StackOverflowError,
    StackUnderflowError,
    execute_one_cycle,
)
from pychip8.cpu.state import FONT_SPRITES, STACK_DEPTH


def make_cpu(*opcodes: int, rng: random.Random | None = None) -> tuple[Chip8CPU, MachineState]:
    state = MachineState()
    address = 0x200
    for opcode in opcodes:
        state.memory.store16(address, opcode)
        address += 2
    cpu = Chip8CPU(state, rng=rng if rng is not None else random.Random(1))
    return cpu, state


def test_fetch_is_big_endian_and_advances_by_two() -> None:
    cpu, state = make_cpu(0x6A42)  # LD VA, 0x42

    instruction = cpu.execute_one_cycle()

    assert instruction is not None
    assert instruction.mnemonic == "LD"
    assert state.registers_v[0xA] == 0x42
    assert state.program_counter == 0x202
    assert cpu.cycle_count == 1
    assert cpu.last_opcode == 0x6A42


def test_clear_display_marks_dirty() -> None:
    cpu, state = make_cpu(0x00E0)
    state.framebuffer.xor(3, 4)
    state.display_dirty = False

    cpu.execute_one_cycle()

    assert state.framebuffer.lit_count() == 0
    assert state.display_dirty
    assert state.program_counter == 0x202


def test_call_pushes_unincremented_pc_and_return_skips_call() -> None:
    cpu, state = make_cpu(0x2300)
    state.memory.store16(0x300, 0x00EE)

    cpu.execute_one_cycle()
    assert state.program_counter == 0x300
    assert state.call_stack == [0x200]
    assert state.stack_pointer == 1

    cpu.execute_one_cycle()
    assert state.program_counter == 0x202
    assert state.stack_pointer == 0


def test_jump_and_jump_with_offset() -> None:
    cpu, state = make_cpu(0x1456)
    cpu.execute_one_cycle()
    assert state.program_counter == 0x456

    cpu, state = make_cpu(0xB300)
    state.registers_v[0] = 0x10
    state.registers_v[1] = 0x77
    cpu.execute_one_cycle()
    assert state.program_counter == 0x310


def test_skip_if_equal_immediate() -> None:
    cpu, state = make_cpu(0x3110)
    state.registers_v[1] = 0x10
    cpu.execute_one_cycle()
    assert state.program_counter == 0x204

    cpu, state = make_cpu(0x3110)
    state.registers_v[1] = 0x11
    cpu.execute_one_cycle()
    assert state.program_counter == 0x202


def test_skip_if_not_equal_and_register_compares() -> None:
    cpu, state = make_cpu(0x4105)
    state.registers_v[1] = 0x06
    cpu.execute_one_cycle()
    assert state.program_counter == 0x204

    cpu, state = make_cpu(0x5120)
    state.registers_v[1] = state.registers_v[2] = 0x33
    cpu.execute_one_cycle()
    assert state.program_counter == 0x204

    cpu, state = make_cpu(0x9120)
    state.registers_v[1] = state.registers_v[2] = 0x33
    cpu.execute_one_cycle()
    assert state.program_counter == 0x202


def test_add_immediate_wraps_without_touching_flag() -> None:
    cpu, state = make_cpu(0x7302)
    state.registers_v[3] = 0xFF
    state.registers_v[0xF] = 0x55

    cpu.execute_one_cycle()

    assert state.registers_v[3] == 0x01
    assert state.registers_v[0xF] == 0x55


def test_add_register_sets_carry() -> None:
    cpu, state = make_cpu(0x8124)
    state.registers_v[1] = 0xFF
    state.registers_v[2] = 0x02

    cpu.execute_one_cycle()

    assert state.registers_v[1] == 0x01
    assert state.registers_v[0xF] == 1


def test_logic_ops() -> None:
    cpu, state = make_cpu(0x8121, 0x8132, 0x8143, 0x8150)
    state.registers_v[1] = 0b1100
    state.registers_v[2] = 0b0011
    state.registers_v[3] = 0b0110
    state.registers_v[4] = 0b1111
    state.registers_v[5] = 0xAB

    cpu.execute_one_cycle()
    assert state.registers_v[1] == 0b1111
    cpu.execute_one_cycle()
    assert state.registers_v[1] == 0b0110
    cpu.execute_one_cycle()
    assert state.registers_v[1] == 0b1001
    cpu.execute_one_cycle()
    assert state.registers_v[1] == 0xAB


@pytest.mark.parametrize(
    ("vx", "vy", "result", "flag"),
    [(5, 3, 2, 1), (3, 5, 254, 0), (7, 7, 0, 0)],
)
def test_subtract_uses_no_borrow_flag(vx: int, vy: int, result: int, flag: int) -> None:
    cpu, state = make_cpu(0x8015)
    state.registers_v[0] = vx
    state.registers_v[1] = vy

    cpu.execute_one_cycle()

    assert state.registers_v[0] == result
    assert state.registers_v[0xF] == flag


def test_subtract_reversed() -> None:
    cpu, state = make_cpu(0x8017)
    state.registers_v[0] = 3
    state.registers_v[1] = 5

    cpu.execute_one_cycle()

    assert state.registers_v[0] == 2
    assert state.registers_v[0xF] == 1


def test_shift_right_ignores_secondary_register() -> None:
    cpu, state = make_cpu(0x8126)
    state.registers_v[1] = 0x05
    state.registers_v[2] = 0xF0

    cpu.execute_one_cycle()

    assert state.registers_v[1] == 0x02
    assert state.registers_v[0xF] == 1
    assert state.registers_v[2] == 0xF0


def test_shift_left_reports_high_bit() -> None:
    cpu, state = make_cpu(0x812E)
    state.registers_v[1] = 0x81

    cpu.execute_one_cycle()

    assert state.registers_v[1] == 0x02
    assert state.registers_v[0xF] == 1


def test_flag_wins_when_target_is_vf() -> None:
    cpu, state = make_cpu(0x8F14)
    state.registers_v[0xF] = 0x10
    state.registers_v[1] = 0x20

    cpu.execute_one_cycle()

    assert state.registers_v[0xF] == 0


def test_set_index_and_add_to_index() -> None:
    cpu, state = make_cpu(0xAFFE, 0xF31E)
    state.registers_v[3] = 0x04

    cpu.execute_one_cycle()
    assert state.register_i == 0xFFE
    cpu.execute_one_cycle()
    assert state.register_i == 0x002
    assert state.registers_v[0xF] == 0


def test_random_is_masked_and_uses_injected_source() -> None:
    cpu, state = make_cpu(0xC40F, rng=random.Random(1234))
    expected = random.Random(1234).randrange(0x100) & 0x0F

    cpu.execute_one_cycle()

    assert state.registers_v[4] == expected


def test_draw_twice_collides_and_restores_pixels() -> None:
    cpu, state = make_cpu(0xD125, 0xD125)
    state.register_i = 0x000  # glyph "0"
    state.registers_v[1] = 10
    state.registers_v[2] = 5

    cpu.execute_one_cycle()
    assert state.registers_v[0xF] == 0
    assert state.framebuffer.lit_count() == 14
    assert state.framebuffer.get(10, 5) == 1

    state.display_dirty = False
    cpu.execute_one_cycle()
    assert state.registers_v[0xF] == 1
    assert state.framebuffer.lit_count() == 0
    assert state.display_dirty


def test_draw_without_collision_clears_stale_flag() -> None:
    cpu, state = make_cpu(0xD125)
    state.register_i = 0x000  # glyph "0"
    state.registers_v[0xF] = 1
    state.registers_v[1] = 10
    state.registers_v[2] = 5

    cpu.execute_one_cycle()

    assert state.registers_v[0xF] == 0
    assert state.framebuffer.lit_count() == 14


def test_draw_wraps_around_edges() -> None:
    cpu, state = make_cpu(0xD011)
    state.memory.store8(0x300, 0xFF)
    state.register_i = 0x300
    state.registers_v[0] = 60
    state.registers_v[1] = 31

    cpu.execute_one_cycle()

    assert state.framebuffer.get(63, 31) == 1
    assert state.framebuffer.get(0, 31) == 1
    assert state.framebuffer.get(3, 31) == 1
    assert state.framebuffer.get(4, 31) == 0


def test_key_skips_read_input_keys() -> None:
    cpu, state = make_cpu(0xE59E)
    state.registers_v[5] = 0xA
    state.input_keys[0xA] = True
    cpu.execute_one_cycle()
    assert state.program_counter == 0x204

    cpu, state = make_cpu(0xE5A1)
    state.registers_v[5] = 0xA
    cpu.execute_one_cycle()
    assert state.program_counter == 0x204


def test_timer_transfers() -> None:
    cpu, state = make_cpu(0xF215, 0xF318, 0xF407)
    state.registers_v[2] = 30
    state.registers_v[3] = 7

    cpu.execute_one_cycle()
    cpu.execute_one_cycle()
    assert state.delay_timer == 30
    assert state.sound_timer == 7

    state.delay_timer = 12
    cpu.execute_one_cycle()
    assert state.registers_v[4] == 12


def test_wait_key_records_register_without_blocking() -> None:
    cpu, state = make_cpu(0xF70A)

    cpu.execute_one_cycle()

    assert state.pending_key_register == 7
    assert state.program_counter == 0x202

    assert cpu.deliver_key(0xC)
    assert state.registers_v[7] == 0xC
    assert state.pending_key_register is None
    assert not cpu.deliver_key(0x1)


def test_deliver_key_rejects_out_of_range_index() -> None:
    cpu, state = make_cpu(0xF00A)
    cpu.execute_one_cycle()

    with pytest.raises(ValueError):
        cpu.deliver_key(16)
    assert state.pending_key_register == 0


def test_font_address_points_at_glyph() -> None:
    cpu, state = make_cpu(0xF129)
    state.registers_v[1] = 0xB

    cpu.execute_one_cycle()

    assert state.register_i == 0xB * 5
    glyph = state.memory.load_block(state.register_i, 5)
    assert glyph == FONT_SPRITES[0xB * 5 : 0xB * 5 + 5]


def test_bcd_store() -> None:
    cpu, state = make_cpu(0xF033)
    state.registers_v[0] = 234
    state.register_i = 0x400

    cpu.execute_one_cycle()

    assert state.memory.load_block(0x400, 3) == bytes([2, 3, 4])


def test_register_dump_and_load_round_trip() -> None:
    cpu, state = make_cpu(0xF355, 0x6000, 0x6100, 0xF365)
    state.register_i = 0x500
    state.registers_v[0:4] = bytes([0x11, 0x22, 0x33, 0x44])
    state.registers_v[4] = 0x99

    cpu.execute_one_cycle()
    assert state.memory.load_block(0x500, 5) == bytes([0x11, 0x22, 0x33, 0x44, 0x00])

    cpu.execute_one_cycle()
    cpu.execute_one_cycle()
    cpu.execute_one_cycle()
    assert bytes(state.registers_v[0:5]) == bytes([0x11, 0x22, 0x33, 0x44, 0x99])
    assert state.register_i == 0x500


@pytest.mark.parametrize("opcode", [0x0123, 0x00E1, 0x812F, 0xE1FF, 0xF1FF])
def test_unknown_opcode_only_advances_pc(opcode: int, capsys) -> None:
    cpu, state = make_cpu(opcode)
    state.registers_v[:] = bytes(range(16))
    state.register_i = 0x345
    memory_before = state.memory.snapshot()
    display_before = state.framebuffer.snapshot()

    instruction = cpu.execute_one_cycle()

    assert instruction is None
    assert state.program_counter == 0x202
    assert bytes(state.registers_v) == bytes(range(16))
    assert state.register_i == 0x345
    assert state.memory.snapshot() == memory_before
    assert state.framebuffer.snapshot() == display_before
    assert cpu.unknown_count == 1
    assert f"{opcode:04X}" in capsys.readouterr().err


def test_strict_mode_raises_on_unknown_opcode() -> None:
    cpu, state = make_cpu(0x0123)
    cpu.strict_illegal = True

    with pytest.raises(IllegalOpcodeError):
        cpu.execute_one_cycle()
    assert state.program_counter == 0x200


def test_return_with_empty_stack_is_fatal_and_leaves_state() -> None:
    cpu, state = make_cpu(0x00EE)

    with pytest.raises(StackUnderflowError):
        cpu.execute_one_cycle()
    assert state.program_counter == 0x200
    assert state.call_stack == []


def test_call_past_depth_is_fatal_and_leaves_state() -> None:
    cpu, state = make_cpu(0x2200)  # calls itself forever
    for _ in range(STACK_DEPTH):
        cpu.execute_one_cycle()
    assert state.stack_pointer == STACK_DEPTH

    with pytest.raises(StackOverflowError):
        cpu.execute_one_cycle()
    assert state.stack_pointer == STACK_DEPTH
    assert state.program_counter == 0x200


def test_resolution_switches_resize_display() -> None:
    cpu, state = make_cpu(0x00FF, 0x00FE)

    cpu.execute_one_cycle()
    assert (state.display_width, state.display_height) == (128, 64)
    assert state.display_dirty

    cpu.execute_one_cycle()
    assert (state.display_width, state.display_height) == (64, 32)


def test_peek_does_not_execute() -> None:
    cpu, state = make_cpu(0x6105)

    opcode, instruction = cpu.peek()

    assert opcode == 0x6105
    assert instruction is not None and instruction.handler == "op_ld_immediate"
    assert state.registers_v[1] == 0
    assert state.program_counter == 0x200


def test_module_level_execute_one_cycle() -> None:
    state = MachineState()
    state.memory.store16(0x200, 0x6EEE)

    execute_one_cycle(state)

    assert state.registers_v[0xE] == 0xEE
    assert state.program_counter == 0x202
