"""Command-line entry point for the CHIP-8 interpreter."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pychip8.cpu import CPUError
from pychip8.system import DEFAULT_INSTRUCTIONS_PER_SECOND
from pychip8.ui.app import MAX_SCALE, MIN_SCALE, AppConfig, Chip8App
from pychip8.video import PALETTES, palette_by_name


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _instruction_rate(text: str) -> int:
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid instruction rate: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError("instruction rate must be at least 1")
    return value


def _scale_factor(text: str) -> int:
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid scale factor: {text!r}") from None
    if not MIN_SCALE <= value <= MAX_SCALE:
        raise argparse.ArgumentTypeError(
            f"scale factor must be between {MIN_SCALE} and {MAX_SCALE}"
        )
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="run.py",
        description="CHIP-8 interpreter",
    )
    parser.add_argument(
        "rom",
        type=Path,
        help="Path to the CHIP-8 ROM image",
    )
    parser.add_argument(
        "-r",
        "--instr-rate",
        type=_instruction_rate,
        default=DEFAULT_INSTRUCTIONS_PER_SECOND,
        metavar="N",
        help=f"Instructions executed per second (default: {DEFAULT_INSTRUCTIONS_PER_SECOND})",
    )
    parser.add_argument(
        "-s",
        "--scale-factor",
        type=_scale_factor,
        default=8,
        metavar="N",
        help=f"Window pixels per display cell, {MIN_SCALE}-{MAX_SCALE} (default: 8)",
    )
    parser.add_argument(
        "--fullscreen",
        action="store_true",
        help="Launch the interpreter in fullscreen mode",
    )
    parser.add_argument(
        "--palette",
        choices=sorted(PALETTES),
        default="mono",
        help="Display colours (default: mono)",
    )
    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Do not open an audio device",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Stop on unknown instructions instead of skipping them",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the RND instruction",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    config = AppConfig(
        rom_path=args.rom,
        instructions_per_second=args.instr_rate,
        scale=args.scale_factor,
        fullscreen=args.fullscreen,
        enable_audio=not args.no_audio,
        strict_opcodes=args.strict,
        seed=args.seed,
        palette=palette_by_name(args.palette),
    )
    app = Chip8App(config)
    try:
        app.run()
    except (RuntimeError, CPUError) as exc:
        parser.exit(1, f"run.py: {exc}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
