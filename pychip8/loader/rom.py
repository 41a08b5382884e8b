"""Raw CHIP-8 ROM loader."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from pychip8.cpu import MachineState
from pychip8.cpu.state import PROGRAM_SIZE, PROGRAM_START
from pychip8.utils import debug_enabled, debug_log


class RomLoadError(RuntimeError):
    """Raised when a ROM image cannot be read or does not fit in memory."""


@dataclass
class RomImage:
    """Describes a ROM copied into program memory."""

    name: str
    size: int
    start: int = PROGRAM_START

    @property
    def end(self) -> int:
        """Last address occupied by the image (``start - 1`` when empty)."""

        return self.start + self.size - 1


def read_rom(stream: BinaryIO) -> bytes:
    """Read a whole ROM from ``stream``, enforcing the program-memory limit."""

    data = stream.read(PROGRAM_SIZE + 1)
    if len(data) > PROGRAM_SIZE:
        raise RomLoadError(
            f"ROM is larger than the {PROGRAM_SIZE} bytes available at 0x{PROGRAM_START:03X}"
        )
    return bytes(data)


def load_rom(stream: BinaryIO, state: MachineState, *, name: str = "") -> RomImage:
    """Copy the ROM in ``stream`` to 0x200 of ``state`` and return its metadata."""

    data = read_rom(stream)
    state.load_program(data)
    image = RomImage(name=name, size=len(data))
    if debug_enabled("cpu"):
        debug_log("cpu", "rom_loaded name=%s size=%d end=%03x", name or "<stream>", image.size, image.end)
    return image


def load_rom_from_path(path: Path, state: MachineState) -> RomImage:
    """Load a ROM image from the filesystem."""

    path = Path(path)
    try:
        with path.open("rb") as handle:
            return load_rom(handle, state, name=path.name)
    except OSError as exc:
        raise RomLoadError(f"unable to read ROM {path}: {exc.strerror or exc}") from exc


__all__ = ["RomImage", "RomLoadError", "load_rom", "load_rom_from_path", "read_rom"]
