"""Named two-colour palettes for the CHIP-8 display."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple

RGBColor = Tuple[int, int, int]


@dataclass(frozen=True)
class Palette:
    """Colours for unlit and lit framebuffer cells."""

    background: RGBColor
    foreground: RGBColor

    def __post_init__(self) -> None:
        for color in (self.background, self.foreground):
            if len(color) != 3 or not all(0 <= channel <= 0xFF for channel in color):
                raise ValueError(f"invalid RGB colour: {color!r}")

    def color(self, lit: bool) -> RGBColor:
        return self.foreground if lit else self.background


MONOCHROME = Palette(background=(0x00, 0x00, 0x00), foreground=(0xFF, 0xFF, 0xFF))
AMBER = Palette(background=(0x1A, 0x0F, 0x00), foreground=(0xFF, 0xB0, 0x00))
GREEN = Palette(background=(0x00, 0x14, 0x00), foreground=(0x33, 0xFF, 0x66))

PALETTES: Mapping[str, Palette] = {
    "mono": MONOCHROME,
    "amber": AMBER,
    "green": GREEN,
}


def palette_by_name(name: str) -> Palette:
    """Look up a palette by its command-line name."""

    try:
        return PALETTES[name.lower()]
    except KeyError:
        choices = ", ".join(sorted(PALETTES))
        raise ValueError(f"unknown palette '{name}' (choose from {choices})") from None


__all__ = ["AMBER", "GREEN", "MONOCHROME", "PALETTES", "Palette", "RGBColor", "palette_by_name"]
