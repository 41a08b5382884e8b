"""Hexadecimal keypad mapped onto the host keyboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from pychip8.cpu.state import KEY_COUNT
from pychip8.utils import debug_enabled, debug_log


# Four rows of four host keys, read left to right, become keys 0x0..0xF.
KEY_LAYOUT: Mapping[str, int] = {
    name: index for index, name in enumerate("1234qwerasdfzxcv")
}


ALIAS_TABLE: Mapping[str, str] = {
    "[1]": "1",
    "[2]": "2",
    "[3]": "3",
    "[4]": "4",
}


@dataclass
class Keypad:
    """Pressed/released state of the 16 CHIP-8 keys."""

    layout: Mapping[str, int] = field(default_factory=lambda: dict(KEY_LAYOUT))
    _pressed: list[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    _active: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, index in self.layout.items():
            if not 0 <= index < KEY_COUNT:
                raise ValueError(f"key '{name}' maps outside the keypad: {index}")

    def press(self, key_name: str) -> int | None:
        """Press the keypad key bound to ``key_name``; return its index."""

        index = self.lookup(key_name)
        if index is None:
            if debug_enabled("input"):
                debug_log("input", "unmapped_press=%s", key_name)
            return None
        self._active[index] = self._active.get(index, 0) + 1
        self._set(index, True)
        return index

    def release(self, key_name: str) -> int | None:
        index = self.lookup(key_name)
        if index is None:
            if debug_enabled("input"):
                debug_log("input", "unmapped_release=%s", key_name)
            return None
        count = self._active.get(index, 0)
        if count <= 1:
            self._active.pop(index, None)
            self._set(index, False)
        else:
            self._active[index] = count - 1
        return index

    def reset(self) -> None:
        self._pressed[:] = [False] * KEY_COUNT
        self._active.clear()

    def snapshot(self) -> tuple[bool, ...]:
        return tuple(self._pressed)

    def lookup(self, key_name: str) -> int | None:
        name = key_name.lower()
        name = ALIAS_TABLE.get(name, name)
        return self.layout.get(name)

    def _set(self, index: int, pressed: bool) -> None:
        if self._pressed[index] == pressed:
            return
        self._pressed[index] = pressed
        if debug_enabled("input"):
            debug_log("input", "key=%x %s", index, "down" if pressed else "up")


__all__ = ["ALIAS_TABLE", "KEY_LAYOUT", "Keypad"]
