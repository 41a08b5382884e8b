"""Convert the CHIP-8 framebuffer into RGB frames."""

from __future__ import annotations

from dataclasses import dataclass

from .framebuffer import Framebuffer
from .palette import MONOCHROME, Palette, RGBColor


@dataclass
class RenderResult:
    """A rendered frame at ``scale`` screen pixels per cell."""

    cells: bytes
    columns: int
    rows: int
    scale: int
    palette: Palette

    @property
    def width(self) -> int:
        return self.columns * self.scale

    @property
    def height(self) -> int:
        return self.rows * self.scale

    def get_pixel(self, x: int, y: int) -> RGBColor:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height}")
        cell = self.cells[(y // self.scale) * self.columns + (x // self.scale)]
        return self.palette.color(bool(cell))

    def to_surface(self):
        """Render the frame into a pygame Surface.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for RenderResult.to_surface") from exc

        background, foreground = self.palette.background, self.palette.foreground
        surface = pygame.Surface((self.width, self.height))
        surface.fill(background)
        scale = self.scale
        for index, cell in enumerate(self.cells):
            if not cell:
                continue
            y, x = divmod(index, self.columns)
            surface.fill(foreground, (x * scale, y * scale, scale, scale))
        return surface


class Renderer:
    """Renders a :class:`Framebuffer` using a two-colour palette."""

    def __init__(self, palette: Palette = MONOCHROME) -> None:
        self._palette = palette

    @property
    def palette(self) -> Palette:
        return self._palette

    def render(self, framebuffer: Framebuffer, *, scale: int = 1) -> RenderResult:
        if scale <= 0:
            raise ValueError("scaling factor must be positive")
        return RenderResult(
            cells=framebuffer.snapshot(),
            columns=framebuffer.width,
            rows=framebuffer.height,
            scale=scale,
            palette=self._palette,
        )
