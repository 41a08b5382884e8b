"""Video helpers for the CHIP-8 interpreter."""

from __future__ import annotations

from .framebuffer import DEFAULT_HEIGHT, DEFAULT_WIDTH, MAX_HEIGHT, MAX_WIDTH, Framebuffer
from .palette import AMBER, GREEN, MONOCHROME, PALETTES, Palette, palette_by_name
from .renderer import RenderResult, Renderer

__all__ = [
    "Framebuffer",
    "Renderer",
    "RenderResult",
    "MONOCHROME",
    "AMBER",
    "GREEN",
    "PALETTES",
    "Palette",
    "palette_by_name",
    "DEFAULT_WIDTH",
    "DEFAULT_HEIGHT",
    "MAX_WIDTH",
    "MAX_HEIGHT",
]
