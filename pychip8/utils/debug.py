"""Lightweight debug logging helpers for the CHIP-8 interpreter."""

from __future__ import annotations

import os
import sys
from typing import Iterable

ENV_DEBUG = "CHIP8_DEBUG"

_CATEGORIES: set[str] | None = None


def _load_categories() -> set[str]:
    global _CATEGORIES
    if _CATEGORIES is not None:
        return _CATEGORIES
    value = os.environ.get(ENV_DEBUG, "")
    if not value:
        _CATEGORIES = set()
        return _CATEGORIES
    parts: Iterable[str] = (part.strip().lower() for part in value.split(","))
    _CATEGORIES = {part for part in parts if part}
    return _CATEGORIES


def reload_categories() -> None:
    """Forget the cached category set so ``CHIP8_DEBUG`` is read again."""

    global _CATEGORIES
    _CATEGORIES = None


def debug_enabled(category: str | None = None) -> bool:
    categories = _load_categories()
    if not categories:
        return False
    if "all" in categories:
        return True
    if category is None:
        return True
    return category.lower() in categories


def _format(message: str, args: tuple) -> str:
    if not args:
        return message
    try:
        return message % args
    except Exception:
        return f"{message} {args!r}"


def debug_log(category: str, message: str, *args) -> None:
    if not debug_enabled(category):
        return
    prefix = f"[CHIP8][{category}]"
    print(f"{prefix} {_format(message, args)}")


def report_error(category: str, message: str, *args) -> None:
    """Write an error line to stderr regardless of the enabled categories."""

    print(f"[CHIP8][{category}] ERROR: {_format(message, args)}", file=sys.stderr)
