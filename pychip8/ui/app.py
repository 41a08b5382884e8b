"""Pygame frontend for the CHIP-8 interpreter."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from pychip8.audio import ToneBeeper
from pychip8.io import Keypad
from pychip8.loader import load_rom_from_path
from pychip8.system import (
    DEFAULT_INSTRUCTIONS_PER_SECOND,
    CycleDriver,
    Machine,
    MachineConfig,
    TimerTicker,
    create_machine,
)
from pychip8.utils import TraceRecorder, debug_enabled, debug_log
from pychip8.video import DEFAULT_HEIGHT, DEFAULT_WIDTH, MONOCHROME, Framebuffer, Palette, Renderer

MIN_SCALE = 1
MAX_SCALE = 16

_SAMPLE_RATE = 44_100
_KEY_WAIT_POLL_MS = 50


@dataclass
class AppConfig:
    """Configuration for the CHIP-8 frontend."""

    rom_path: Optional[Path] = None
    instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND
    scale: int = 8
    fullscreen: bool = False
    enable_audio: bool = True
    strict_opcodes: bool = False
    seed: Optional[int] = None
    palette: Palette = MONOCHROME


class PygameFrontend:
    """Window, keyboard and event pump used by :class:`CycleDriver`."""

    def __init__(self, pygame, screen, keypad: Keypad, renderer: Renderer, scale: int) -> None:
        self._pygame = pygame
        self._screen = screen
        self._keypad = keypad
        self._renderer = renderer
        self._scale = scale
        self._background = renderer.palette.background

    def key_states(self) -> Sequence[bool]:
        return self._keypad.snapshot()

    def present(self, framebuffer: Framebuffer) -> None:
        # The window is sized for 64x32; high resolution frames are drawn
        # at a proportionally smaller scale so they fill the same area.
        scale = max(1, (self._scale * DEFAULT_WIDTH) // framebuffer.width)
        frame = self._renderer.render(framebuffer, scale=scale)
        if debug_enabled("video"):
            debug_log(
                "video",
                "present %dx%d scale=%d lit=%d",
                framebuffer.width,
                framebuffer.height,
                scale,
                framebuffer.lit_count(),
            )
        self._screen.fill(self._background)
        self._screen.blit(frame.to_surface(), (0, 0))
        self._pygame.display.flip()

    def poll_events(self) -> bool:
        pygame = self._pygame
        for event in pygame.event.get():
            if self._is_quit(event):
                return True
            if event.type == pygame.KEYDOWN:
                self._handle_key_event(event.key, pressed=True)
            elif event.type == pygame.KEYUP:
                self._handle_key_event(event.key, pressed=False)
            elif event.type == pygame.WINDOWFOCUSLOST:
                # Key-up events are not delivered to an unfocused window.
                self._keypad.reset()
        return False

    def wait_for_key(self, quit_event: threading.Event) -> Optional[int]:
        pygame = self._pygame
        while not quit_event.is_set():
            event = pygame.event.wait(_KEY_WAIT_POLL_MS)
            if event.type == pygame.NOEVENT:
                continue
            if self._is_quit(event):
                return None
            if event.type == pygame.KEYDOWN:
                key = self._handle_key_event(event.key, pressed=True)
                if key is not None:
                    return key
            elif event.type == pygame.KEYUP:
                self._handle_key_event(event.key, pressed=False)
        return None

    # ------------------------------------------------------------------
    # Internals

    def _is_quit(self, event) -> bool:
        pygame = self._pygame
        if event.type == pygame.QUIT:
            return True
        return event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE

    def _handle_key_event(self, key_code: int, *, pressed: bool) -> Optional[int]:
        name = self._pygame.key.name(key_code)
        if debug_enabled("input"):
            debug_log("input", "event=%s pressed=%s", name, pressed)
        if pressed:
            return self._keypad.press(name)
        return self._keypad.release(name)


class Chip8App:
    """Owns the pygame resources and the threads that drive the machine."""

    def __init__(self, config: AppConfig) -> None:
        if not MIN_SCALE <= config.scale <= MAX_SCALE:
            raise ValueError(f"scale must be between {MIN_SCALE} and {MAX_SCALE}")
        self._config = config
        self._keypad = Keypad()
        self._trace_recorder: TraceRecorder | None = None
        if debug_enabled("trace"):
            self._trace_recorder = TraceRecorder(512)

    def run(self) -> None:
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required to run the UI") from exc

        if not self._config.rom_path:
            raise RuntimeError("ROM image is required")

        machine = self._create_machine(self._config.rom_path)

        if self._config.enable_audio:
            pygame.mixer.pre_init(_SAMPLE_RATE, -16, 1, 512)
        pygame.init()

        beeper: ToneBeeper | None = None
        ticker: TimerTicker | None = None
        try:
            pygame.display.set_caption("CHIP-8 Interpreter")
            screen = self._open_window(pygame)
            if self._config.enable_audio:
                beeper = self._open_audio(pygame)

            ticker = TimerTicker(
                machine.guard,
                audio_callback=beeper.set_playing if beeper is not None else None,
            )
            frontend = PygameFrontend(
                pygame,
                screen,
                self._keypad,
                Renderer(self._config.palette),
                self._config.scale,
            )
            driver = CycleDriver(
                machine,
                frontend,
                instructions_per_second=self._config.instructions_per_second,
                trace=self._trace_recorder,
            )

            ticker.start()
            driver.run()
        finally:
            if ticker is not None:
                ticker.stop()
            if beeper is not None:
                beeper.shutdown()
            pygame.quit()

    # ------------------------------------------------------------------
    # Setup helpers

    def _create_machine(self, rom_path: Path) -> Machine:
        machine = create_machine(
            MachineConfig(seed=self._config.seed, strict_opcodes=self._config.strict_opcodes)
        )
        image = load_rom_from_path(rom_path, machine.state)
        if debug_enabled("cpu"):
            debug_log("cpu", "rom=%s bytes=%d", image.name, image.size)
        return machine

    def _open_window(self, pygame):
        size = (DEFAULT_WIDTH * self._config.scale, DEFAULT_HEIGHT * self._config.scale)
        flags = pygame.FULLSCREEN if self._config.fullscreen else 0
        try:
            return pygame.display.set_mode(size, flags)
        except pygame.error as exc:
            raise RuntimeError(f"unable to open display: {exc}") from exc

    def _open_audio(self, pygame) -> ToneBeeper:
        if pygame.mixer.get_init() is None:
            try:
                pygame.mixer.init(_SAMPLE_RATE, -16, 1)
            except pygame.error as exc:
                raise RuntimeError(f"unable to open audio device: {exc}") from exc
        if debug_enabled("audio"):
            debug_log("audio", "mixer=%s", pygame.mixer.get_init())
        return ToneBeeper()


__all__ = ["AppConfig", "Chip8App", "MAX_SCALE", "MIN_SCALE", "PygameFrontend"]
