"""Register file, memory and peripherals state of the CHIP-8 machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from pychip8.bus import MEMORY_SIZE, Memory
from pychip8.video import Framebuffer

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_DEPTH = 16
KEY_COUNT = 16

FONT_START = 0x000
FONT_GLYPH_BYTES = 5
PROGRAM_START = 0x200
PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

FONT_SPRITES = bytes(
    (
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    )
)


@dataclass
class MachineState:
    """Passive record of everything the instruction engine and timers touch.

    The instruction engine, the timer ticker and the cycle driver all hold a
    reference to the same instance.
    """

    memory: Memory = field(default_factory=Memory)
    registers_v: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))
    register_i: int = 0x000
    delay_timer: int = 0
    sound_timer: int = 0
    program_counter: int = PROGRAM_START
    call_stack: List[int] = field(default_factory=list)
    framebuffer: Framebuffer = field(default_factory=Framebuffer)
    input_keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    pending_key_register: Optional[int] = None

    def __post_init__(self) -> None:
        self.memory.write_block(FONT_START, FONT_SPRITES)

    def load_program(self, data: bytes) -> None:
        if len(data) > PROGRAM_SIZE:
            raise ValueError(
                f"program of {len(data)} bytes exceeds program memory ({PROGRAM_SIZE} bytes)"
            )
        self.memory.write_block(PROGRAM_START, data)

    # ------------------------------------------------------------------
    # Derived views

    @property
    def stack_pointer(self) -> int:
        return len(self.call_stack)

    @property
    def display(self) -> bytearray:
        return self.framebuffer.cells

    @property
    def display_width(self) -> int:
        return self.framebuffer.width

    @property
    def display_height(self) -> int:
        return self.framebuffer.height

    @property
    def display_dirty(self) -> bool:
        return self.framebuffer.dirty

    @display_dirty.setter
    def display_dirty(self, value: bool) -> None:
        self.framebuffer.dirty = bool(value)

    def set_keys(self, pressed: Iterable[bool]) -> None:
        values = [bool(value) for value in pressed]
        if len(values) != KEY_COUNT:
            raise ValueError(f"expected {KEY_COUNT} key states, got {len(values)}")
        self.input_keys[:] = values
