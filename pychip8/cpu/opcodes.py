"""Opcode metadata and decoding for the CHIP-8 instruction set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Final, Iterable, List, Mapping, Sequence

# Each family (high nibble) is decoded with a single mask: the bits that
# select a sub-opcode inside the family. Families 0, 8, E and F have
# secondary opcodes; every other family is selected by its high nibble only.
FAMILY_MASKS: Final[Mapping[int, int]] = {
    0x0: 0xFFFF,
    0x1: 0xF000,
    0x2: 0xF000,
    0x3: 0xF000,
    0x4: 0xF000,
    0x5: 0xF000,
    0x6: 0xF000,
    0x7: 0xF000,
    0x8: 0xF00F,
    0x9: 0xF000,
    0xA: 0xF000,
    0xB: 0xF000,
    0xC: 0xF000,
    0xD: 0xF000,
    0xE: 0xF0FF,
    0xF: 0xF0FF,
}


@dataclass(frozen=True)
class Instruction:
    """Metadata describing a single CHIP-8 opcode pattern."""

    pattern: int
    mnemonic: str
    handler: str
    operands: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.pattern <= 0xFFFF:
            raise ValueError(f"opcode pattern out of range: {self.pattern:#x}")
        if self.pattern & ~self.mask & 0xFFFF:
            raise ValueError(
                f"pattern {self.pattern:#06x} has bits outside family mask {self.mask:#06x}"
            )

    @property
    def family(self) -> int:
        return (self.pattern >> 12) & 0xF

    @property
    def mask(self) -> int:
        return FAMILY_MASKS[self.family]

    def matches(self, opcode: int) -> bool:
        return (opcode & self.mask) == self.pattern


class OpcodeTable:
    """Mutable builder for the per-family decode tables."""

    def __init__(self) -> None:
        self._families: List[Dict[int, Instruction]] = [{} for _ in range(16)]

    def register(self, instruction: Instruction) -> None:
        table = self._families[instruction.family]
        existing = table.get(instruction.pattern)
        if existing is not None:
            raise ValueError(
                f"opcode {instruction.pattern:#06x} already registered as {existing.mnemonic}")
        table[instruction.pattern] = instruction

    def register_all(self, instructions: Iterable[Instruction]) -> None:
        for instruction in instructions:
            self.register(instruction)

    def freeze(self) -> Sequence[Mapping[int, Instruction]]:
        return tuple(dict(table) for table in self._families)


def build_instruction_table(instructions: Iterable[Instruction]) -> Sequence[Mapping[int, Instruction]]:
    """Build the sixteen family lookup tables."""

    table = OpcodeTable()
    table.register_all(instructions)
    return table.freeze()


DEFAULT_INSTRUCTIONS: Sequence[Instruction] = (
    Instruction(0x00E0, "CLS", "op_cls"),
    Instruction(0x00EE, "RET", "op_ret"),
    # Super-CHIP resolution switches
    Instruction(0x00FE, "LOW", "op_low_res"),
    Instruction(0x00FF, "HIGH", "op_high_res"),
    Instruction(0x1000, "JP", "op_jp", "nnn"),
    Instruction(0x2000, "CALL", "op_call", "nnn"),
    Instruction(0x3000, "SE", "op_se_immediate", "x,kk"),
    Instruction(0x4000, "SNE", "op_sne_immediate", "x,kk"),
    Instruction(0x5000, "SE", "op_se_register", "x,y"),
    Instruction(0x6000, "LD", "op_ld_immediate", "x,kk"),
    Instruction(0x7000, "ADD", "op_add_immediate", "x,kk"),
    # Register to register
    Instruction(0x8000, "LD", "op_ld_register", "x,y"),
    Instruction(0x8001, "OR", "op_or", "x,y"),
    Instruction(0x8002, "AND", "op_and", "x,y"),
    Instruction(0x8003, "XOR", "op_xor", "x,y"),
    Instruction(0x8004, "ADD", "op_add_register", "x,y"),
    Instruction(0x8005, "SUB", "op_sub", "x,y"),
    Instruction(0x8006, "SHR", "op_shr", "x"),
    Instruction(0x8007, "SUBN", "op_subn", "x,y"),
    Instruction(0x800E, "SHL", "op_shl", "x"),
    Instruction(0x9000, "SNE", "op_sne_register", "x,y"),
    Instruction(0xA000, "LD", "op_ld_i", "I,nnn"),
    Instruction(0xB000, "JP", "op_jp_offset", "V0,nnn"),
    Instruction(0xC000, "RND", "op_rnd", "x,kk"),
    Instruction(0xD000, "DRW", "op_drw", "x,y,n"),
    # Keypad
    Instruction(0xE09E, "SKP", "op_skp", "x"),
    Instruction(0xE0A1, "SKNP", "op_sknp", "x"),
    # Timers, address register and memory transfers
    Instruction(0xF007, "LD", "op_ld_from_delay", "x,DT"),
    Instruction(0xF00A, "LD", "op_wait_key", "x,K"),
    Instruction(0xF015, "LD", "op_ld_delay", "DT,x"),
    Instruction(0xF018, "LD", "op_ld_sound", "ST,x"),
    Instruction(0xF01E, "ADD", "op_add_i", "I,x"),
    Instruction(0xF029, "LD", "op_ld_font", "F,x"),
    Instruction(0xF033, "LD", "op_bcd", "B,x"),
    Instruction(0xF055, "LD", "op_store_registers", "[I],x"),
    Instruction(0xF065, "LD", "op_load_registers", "x,[I]"),
)


OPCODE_TABLE: Sequence[Mapping[int, Instruction]] = build_instruction_table(DEFAULT_INSTRUCTIONS)


def decode(opcode: int, table: Sequence[Mapping[int, Instruction]] = OPCODE_TABLE) -> Instruction | None:
    """Return the instruction for ``opcode`` or ``None`` when it is unknown.

    A miss inside a family never falls through to another family.
    """

    family = (opcode >> 12) & 0xF
    return table[family].get(opcode & FAMILY_MASKS[family])


def operand_x(opcode: int) -> int:
    return (opcode >> 8) & 0xF


def operand_y(opcode: int) -> int:
    return (opcode >> 4) & 0xF


def operand_n(opcode: int) -> int:
    return opcode & 0xF


def operand_kk(opcode: int) -> int:
    return opcode & 0xFF


def operand_nnn(opcode: int) -> int:
    return opcode & 0xFFF


def disassemble(opcode: int) -> str:
    """Render ``opcode`` in conventional assembler notation."""

    instruction = decode(opcode)
    if instruction is None:
        return f"??? {opcode:04X}"
    if not instruction.operands:
        return instruction.mnemonic
    values = {
        "x": f"V{operand_x(opcode):X}",
        "y": f"V{operand_y(opcode):X}",
        "n": f"{operand_n(opcode):X}",
        "kk": f"{operand_kk(opcode):02X}",
        "nnn": f"{operand_nnn(opcode):03X}",
    }
    parts = [values.get(token, token) for token in instruction.operands.split(",")]
    return f"{instruction.mnemonic} {', '.join(parts)}"
