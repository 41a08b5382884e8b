"""User interface layer."""

from .app import AppConfig, Chip8App, PygameFrontend

__all__ = ["AppConfig", "Chip8App", "PygameFrontend"]
