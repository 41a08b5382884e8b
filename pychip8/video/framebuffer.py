"""Monochrome framebuffer for the CHIP-8 display."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_WIDTH = 64
DEFAULT_HEIGHT = 32
MAX_WIDTH = 128
MAX_HEIGHT = 64


@dataclass
class Framebuffer:
    """Bitmap of on/off cells plus a dirty flag consumed by the renderer.

    Coordinates wrap around both axes, so a sprite running off the right or
    bottom edge continues on the opposite side.
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    dirty: bool = False

    def __post_init__(self) -> None:
        self._validate_size(self.width, self.height)
        self._cells = bytearray(self.width * self.height)

    @staticmethod
    def _validate_size(width: int, height: int) -> None:
        if not (1 <= width <= MAX_WIDTH and 1 <= height <= MAX_HEIGHT):
            raise ValueError(
                f"display size {width}x{height} outside 1x1-{MAX_WIDTH}x{MAX_HEIGHT}"
            )

    @property
    def cells(self) -> bytearray:
        return self._cells

    def _index(self, x: int, y: int) -> int:
        return (y % self.height) * self.width + (x % self.width)

    def get(self, x: int, y: int) -> int:
        return self._cells[self._index(x, y)]

    def xor(self, x: int, y: int) -> bool:
        """Toggle the cell at ``(x, y)`` and report whether it was lit before."""

        index = self._index(x, y)
        was_set = self._cells[index] == 1
        self._cells[index] ^= 1
        return was_set

    def clear(self) -> None:
        self._cells[:] = bytes(len(self._cells))
        self.dirty = True

    def resize(self, width: int, height: int) -> None:
        self._validate_size(width, height)
        self.width = width
        self.height = height
        self._cells = bytearray(width * height)
        self.dirty = True

    def lit_count(self) -> int:
        return sum(self._cells)

    def snapshot(self) -> bytes:
        return bytes(self._cells)

    def consume(self) -> bool:
        """Return the dirty flag and clear it."""

        was_dirty = self.dirty
        self.dirty = False
        return was_dirty
