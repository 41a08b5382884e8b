"""CHIP-8 interpreter written in Python.

The engine, timers and display model are plain Python; pygame is only
needed by :mod:`pychip8.ui` and :mod:`pychip8.audio` at run time.
"""

from __future__ import annotations

from . import audio, bus, cpu, io, loader, system, ui, utils, video

__all__: list[str] = [
    "cpu",
    "bus",
    "video",
    "audio",
    "io",
    "loader",
    "system",
    "ui",
    "utils",
]

__version__ = "0.1.0"
