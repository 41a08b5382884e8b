"""Host input adapters."""

from .keypad import ALIAS_TABLE, KEY_LAYOUT, Keypad

__all__ = ["ALIAS_TABLE", "KEY_LAYOUT", "Keypad"]
