"""Loaders for CHIP-8 program images."""

from __future__ import annotations

from .rom import RomImage, RomLoadError, load_rom, load_rom_from_path, read_rom

__all__ = [
    "RomImage",
    "RomLoadError",
    "load_rom",
    "load_rom_from_path",
    "read_rom",
]
