"""CHIP-8 instruction engine."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from pychip8.utils import debug_enabled, debug_log, report_error
from pychip8.video import DEFAULT_HEIGHT, DEFAULT_WIDTH, MAX_HEIGHT, MAX_WIDTH

from .opcodes import (
    OPCODE_TABLE,
    Instruction,
    decode,
    operand_kk,
    operand_n,
    operand_nnn,
    operand_x,
    operand_y,
)
from .state import FLAG_REGISTER, FONT_GLYPH_BYTES, FONT_START, KEY_COUNT, STACK_DEPTH, MachineState


class CPUError(Exception):
    """Base error for CPU-related failures."""


class IllegalOpcodeError(CPUError):
    """Raised in strict mode when the CPU fetches an unknown opcode."""


class StackOverflowError(CPUError):
    """Raised when a CALL would nest deeper than the 16-entry stack."""


class StackUnderflowError(CPUError):
    """Raised when RET executes with an empty call stack."""


def _mask12(value: int) -> int:
    return value & 0xFFF


@dataclass
class Chip8CPU:
    """Fetch/decode/execute engine operating on a shared :class:`MachineState`.

    The engine never blocks: ``Fx0A`` only records the register awaiting a
    key press in ``state.pending_key_register``; the cycle driver is
    responsible for suspending and later calling :meth:`deliver_key`.

    Stack misuse is fatal. ``StackOverflowError``/``StackUnderflowError``
    are raised before the state is touched, so the machine is left exactly
    as it was when the faulting instruction was fetched.
    """

    state: MachineState
    rng: random.Random = field(default_factory=random.Random)
    strict_illegal: bool = False
    instruction_table: Sequence[Mapping[int, Instruction]] = field(default=OPCODE_TABLE)

    cycle_count: int = 0
    unknown_count: int = 0
    last_opcode: Optional[int] = None

    def execute_one_cycle(self) -> Instruction | None:
        """Execute a single instruction and return its metadata.

        ``None`` is returned when the opcode was unknown and skipped.
        """

        state = self.state
        pc = state.program_counter
        opcode = state.memory.load16(pc)
        self.last_opcode = opcode
        if debug_enabled("cpu"):
            debug_log("cpu", "pc=%03x opcode=%04x", pc, opcode)

        instruction = decode(opcode, self.instruction_table)
        if instruction is None:
            self.op_unknown(opcode)
        else:
            handler = getattr(self, instruction.handler, None)
            if handler is None:
                raise CPUError(f"handler '{instruction.handler}' not implemented")
            handler(opcode)

        self.cycle_count += 1
        return instruction

    def peek(self) -> tuple[int, Instruction | None]:
        """Return the opcode at the program counter without executing it."""

        opcode = self.state.memory.load16(self.state.program_counter)
        return opcode, decode(opcode, self.instruction_table)

    def deliver_key(self, key: int) -> bool:
        """Complete a pending ``Fx0A`` wait with ``key``.

        Returns ``False`` when no wait was pending.
        """

        register = self.state.pending_key_register
        if register is None:
            return False
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"key index out of range: {key}")
        self.state.registers_v[register] = key
        self.state.pending_key_register = None
        if debug_enabled("input"):
            debug_log("input", "key_delivered key=%x register=V%X", key, register)
        return True

    # ------------------------------------------------------------------
    # Program counter helpers

    def _advance(self, amount: int = 2) -> None:
        self.state.program_counter = _mask12(self.state.program_counter + amount)

    def _skip_if(self, condition: bool) -> None:
        self._advance(4 if condition else 2)

    def _set_flag(self, value: bool) -> None:
        self.state.registers_v[FLAG_REGISTER] = 1 if value else 0

    # ------------------------------------------------------------------
    # Family 0: display and subroutine return

    def op_cls(self, _: int) -> None:
        self.state.framebuffer.clear()
        self._advance()

    def op_ret(self, _: int) -> None:
        state = self.state
        if not state.call_stack:
            raise StackUnderflowError(f"return with empty call stack at pc={state.program_counter:03x}")
        state.program_counter = state.call_stack.pop()
        self._advance()

    def op_low_res(self, _: int) -> None:
        self.state.framebuffer.resize(DEFAULT_WIDTH, DEFAULT_HEIGHT)
        self._advance()

    def op_high_res(self, _: int) -> None:
        self.state.framebuffer.resize(MAX_WIDTH, MAX_HEIGHT)
        self._advance()

    # ------------------------------------------------------------------
    # Jumps, calls and skips

    def op_jp(self, opcode: int) -> None:
        self.state.program_counter = operand_nnn(opcode)

    def op_call(self, opcode: int) -> None:
        state = self.state
        if len(state.call_stack) >= STACK_DEPTH:
            raise StackOverflowError(
                f"call depth exceeds {STACK_DEPTH} at pc={state.program_counter:03x}"
            )
        state.call_stack.append(state.program_counter)
        state.program_counter = operand_nnn(opcode)

    def op_jp_offset(self, opcode: int) -> None:
        self.state.program_counter = _mask12(operand_nnn(opcode) + self.state.registers_v[0])

    def op_se_immediate(self, opcode: int) -> None:
        self._skip_if(self.state.registers_v[operand_x(opcode)] == operand_kk(opcode))

    def op_sne_immediate(self, opcode: int) -> None:
        self._skip_if(self.state.registers_v[operand_x(opcode)] != operand_kk(opcode))

    def op_se_register(self, opcode: int) -> None:
        v = self.state.registers_v
        self._skip_if(v[operand_x(opcode)] == v[operand_y(opcode)])

    def op_sne_register(self, opcode: int) -> None:
        v = self.state.registers_v
        self._skip_if(v[operand_x(opcode)] != v[operand_y(opcode)])

    # ------------------------------------------------------------------
    # Immediate register writes

    def op_ld_immediate(self, opcode: int) -> None:
        self.state.registers_v[operand_x(opcode)] = operand_kk(opcode)
        self._advance()

    def op_add_immediate(self, opcode: int) -> None:
        v = self.state.registers_v
        x = operand_x(opcode)
        v[x] = (v[x] + operand_kk(opcode)) & 0xFF
        self._advance()

    # ------------------------------------------------------------------
    # Register to register (family 8). The result is stored before VF so
    # that the flag survives when x is F.

    def op_ld_register(self, opcode: int) -> None:
        v = self.state.registers_v
        v[operand_x(opcode)] = v[operand_y(opcode)]
        self._advance()

    def op_or(self, opcode: int) -> None:
        v = self.state.registers_v
        v[operand_x(opcode)] |= v[operand_y(opcode)]
        self._advance()

    def op_and(self, opcode: int) -> None:
        v = self.state.registers_v
        v[operand_x(opcode)] &= v[operand_y(opcode)]
        self._advance()

    def op_xor(self, opcode: int) -> None:
        v = self.state.registers_v
        v[operand_x(opcode)] ^= v[operand_y(opcode)]
        self._advance()

    def op_add_register(self, opcode: int) -> None:
        v = self.state.registers_v
        x = operand_x(opcode)
        total = v[x] + v[operand_y(opcode)]
        v[x] = total & 0xFF
        self._set_flag(total > 0xFF)
        self._advance()

    def op_sub(self, opcode: int) -> None:
        v = self.state.registers_v
        x = operand_x(opcode)
        minuend, subtrahend = v[x], v[operand_y(opcode)]
        v[x] = (minuend - subtrahend) & 0xFF
        # VF means "no borrow": set only on a strictly greater minuend.
        self._set_flag(minuend > subtrahend)
        self._advance()

    def op_subn(self, opcode: int) -> None:
        v = self.state.registers_v
        x = operand_x(opcode)
        subtrahend, minuend = v[x], v[operand_y(opcode)]
        v[x] = (minuend - subtrahend) & 0xFF
        self._set_flag(minuend > subtrahend)
        self._advance()

    def op_shr(self, opcode: int) -> None:
        # Shifts Vx in place; Vy is ignored.
        v = self.state.registers_v
        x = operand_x(opcode)
        value = v[x]
        v[x] = value >> 1
        self._set_flag(value & 0x01)
        self._advance()

    def op_shl(self, opcode: int) -> None:
        v = self.state.registers_v
        x = operand_x(opcode)
        value = v[x]
        v[x] = (value << 1) & 0xFF
        self._set_flag(value & 0x80)
        self._advance()

    # ------------------------------------------------------------------
    # Address register, random numbers and drawing

    def op_ld_i(self, opcode: int) -> None:
        self.state.register_i = operand_nnn(opcode)
        self._advance()

    def op_rnd(self, opcode: int) -> None:
        self.state.registers_v[operand_x(opcode)] = self.rng.randrange(0x100) & operand_kk(opcode)
        self._advance()

    def op_drw(self, opcode: int) -> None:
        state = self.state
        v = state.registers_v
        origin_x = v[operand_x(opcode)]
        origin_y = v[operand_y(opcode)]
        framebuffer = state.framebuffer
        memory = state.memory
        collision = False

        for row in range(operand_n(opcode)):
            sprite = memory.load8(state.register_i + row)
            if not sprite:
                continue
            for bit in range(8):
                if sprite & (0x80 >> bit):
                    if framebuffer.xor(origin_x + bit, origin_y + row):
                        collision = True

        self._set_flag(collision)
        framebuffer.dirty = True
        if debug_enabled("video"):
            debug_log(
                "video",
                "draw x=%d y=%d rows=%d i=%03x collision=%d",
                origin_x,
                origin_y,
                operand_n(opcode),
                state.register_i,
                int(collision),
            )
        self._advance()

    # ------------------------------------------------------------------
    # Keypad

    def _key_pressed(self, opcode: int) -> bool:
        key = self.state.registers_v[operand_x(opcode)] % KEY_COUNT
        return self.state.input_keys[key]

    def op_skp(self, opcode: int) -> None:
        self._skip_if(self._key_pressed(opcode))

    def op_sknp(self, opcode: int) -> None:
        self._skip_if(not self._key_pressed(opcode))

    def op_wait_key(self, opcode: int) -> None:
        self.state.pending_key_register = operand_x(opcode)
        if debug_enabled("input"):
            debug_log("input", "wait_key register=V%X", operand_x(opcode))
        self._advance()

    # ------------------------------------------------------------------
    # Timers

    def op_ld_from_delay(self, opcode: int) -> None:
        self.state.registers_v[operand_x(opcode)] = self.state.delay_timer
        self._advance()

    def op_ld_delay(self, opcode: int) -> None:
        self.state.delay_timer = self.state.registers_v[operand_x(opcode)]
        self._advance()

    def op_ld_sound(self, opcode: int) -> None:
        self.state.sound_timer = self.state.registers_v[operand_x(opcode)]
        self._advance()

    # ------------------------------------------------------------------
    # Address register arithmetic and memory transfers

    def op_add_i(self, opcode: int) -> None:
        state = self.state
        state.register_i = _mask12(state.register_i + state.registers_v[operand_x(opcode)])
        self._advance()

    def op_ld_font(self, opcode: int) -> None:
        digit = self.state.registers_v[operand_x(opcode)]
        self.state.register_i = _mask12(FONT_START + digit * FONT_GLYPH_BYTES)
        self._advance()

    def op_bcd(self, opcode: int) -> None:
        state = self.state
        value = state.registers_v[operand_x(opcode)]
        base = state.register_i
        state.memory.store8(base, value // 100)
        state.memory.store8(base + 1, (value // 10) % 10)
        state.memory.store8(base + 2, value % 10)
        self._advance()

    def op_store_registers(self, opcode: int) -> None:
        state = self.state
        for index in range(operand_x(opcode) + 1):
            state.memory.store8(state.register_i + index, state.registers_v[index])
        self._advance()

    def op_load_registers(self, opcode: int) -> None:
        state = self.state
        for index in range(operand_x(opcode) + 1):
            state.registers_v[index] = state.memory.load8(state.register_i + index)
        self._advance()

    # ------------------------------------------------------------------
    # Unknown opcodes

    def op_unknown(self, opcode: int) -> None:
        pc = self.state.program_counter
        if self.strict_illegal:
            raise IllegalOpcodeError(f"illegal opcode {opcode:04x} at pc={pc:03x}")
        self.unknown_count += 1
        report_error("cpu", "unknown instruction %04X at pc=%03X", opcode, pc)
        self._advance()


def execute_one_cycle(state: MachineState, *, rng: random.Random | None = None) -> Instruction | None:
    """Run one instruction against ``state`` with a throwaway engine.

    Long-running callers should keep a :class:`Chip8CPU` instead, so the
    random source and counters persist between cycles.
    """

    cpu = Chip8CPU(state, rng=rng if rng is not None else random.Random())
    return cpu.execute_one_cycle()
