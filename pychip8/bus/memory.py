"""Memory for the CHIP-8 interpreter.

The address space is a flat 4 KiB byte array. Every address handed to
``load8``/``store8`` is wrapped into the 12-bit range, so addresses derived
from ``I`` or the program counter can never index outside the buffer.
Bulk writes used by the ROM loader are range-checked instead of wrapped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

MEMORY_SIZE = 0x1000
ADDRESS_MASK = MEMORY_SIZE - 1


def _mask12(value: int) -> int:
    """Clamp ``value`` to the 12-bit address space of the CHIP-8."""

    return value & ADDRESS_MASK


class MemoryError(Exception):
    """Raised when a bulk transfer does not fit inside memory."""


@dataclass
class Memory:
    """Byte-addressable memory with wrapping 12-bit addresses."""

    length: int = MEMORY_SIZE

    def __post_init__(self) -> None:
        if self.length != MEMORY_SIZE:
            raise MemoryError(f"memory must be exactly {MEMORY_SIZE:#06x} bytes")
        self._data = bytearray(self.length)

    def __len__(self) -> int:
        return self.length

    def load8(self, address: int) -> int:
        return self._data[_mask12(address)]

    def store8(self, address: int, value: int) -> None:
        self._data[_mask12(address)] = value & 0xFF

    def load16(self, address: int) -> int:
        """Read a big-endian word (instructions are stored high byte first)."""

        high = self.load8(address)
        low = self.load8(address + 1)
        return (high << 8) | low

    def store16(self, address: int, value: int) -> None:
        self.store8(address, (value >> 8) & 0xFF)
        self.store8(address + 1, value & 0xFF)

    def load_block(self, address: int, length: int) -> bytes:
        return bytes(self.load8(address + offset) for offset in range(length))

    def write_block(self, address: int, data: Iterable[int]) -> None:
        payload = bytes(value & 0xFF for value in data)
        if address < 0 or address + len(payload) > self.length:
            raise MemoryError(
                f"block of {len(payload)} bytes at {address:#05x} exceeds memory size {self.length:#06x}"
            )
        self._data[address : address + len(payload)] = payload

    def snapshot(self) -> bytes:
        return bytes(self._data)
