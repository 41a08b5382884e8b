"""Continuous sine tone played while the sound timer is running."""

from __future__ import annotations

from array import array
import math
from typing import Optional

TONE_FREQUENCY_HZ = 880
TONE_AMPLITUDE = 28_000


def build_tone_samples(sample_rate: int, frequency: int = TONE_FREQUENCY_HZ, amplitude: int = TONE_AMPLITUDE) -> array:
    """Return signed 16-bit samples holding a whole number of sine periods.

    The buffer loops without a click because it ends exactly where the next
    period begins.
    """

    if sample_rate <= 0 or frequency <= 0:
        raise ValueError("sample rate and frequency must be positive")
    length = sample_rate // math.gcd(sample_rate, frequency)
    buffer = array("h")
    for index in range(length):
        phase = 2.0 * math.pi * frequency * index / sample_rate
        buffer.append(int(amplitude * math.sin(phase)))
    return buffer


class ToneBeeper:
    """Manage a looping sine tone using pygame's mixer."""

    def __init__(self, *, frequency: int = TONE_FREQUENCY_HZ, volume: float = 0.5) -> None:
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for audio output") from exc

        mixer_state = pygame.mixer.get_init()
        if mixer_state is None:
            raise RuntimeError("pygame mixer must be initialised before creating ToneBeeper")

        sample_rate, _, channels = mixer_state
        samples = build_tone_samples(sample_rate, frequency)
        if channels > 1:
            interleaved = array("h")
            for sample in samples:
                interleaved.extend([sample] * channels)
            samples = interleaved

        try:
            self._sound = pygame.mixer.Sound(buffer=samples.tobytes())
        except pygame.error as exc:  # pragma: no cover - device specific
            raise RuntimeError(f"unable to create tone: {exc}") from exc

        self._pygame = pygame
        self._volume = max(0.0, min(1.0, volume))
        self._channel: Optional[pygame.mixer.Channel] = None
        self._playing = False

    @property
    def playing(self) -> bool:
        return self._playing

    def set_playing(self, enabled: bool) -> None:
        """Start or pause the tone."""

        if enabled == self._playing:
            return
        if enabled:
            channel = self._channel
            if channel is None:
                channel = self._pygame.mixer.find_channel(True)
                if channel is None:
                    return
                self._channel = channel
            channel.play(self._sound, loops=-1)
            channel.set_volume(self._volume)
        elif self._channel is not None:
            self._channel.stop()
        self._playing = enabled

    def shutdown(self) -> None:
        """Stop any active tone and release the channel."""

        self.set_playing(False)
        self._channel = None


__all__ = ["TONE_AMPLITUDE", "TONE_FREQUENCY_HZ", "ToneBeeper", "build_tone_samples"]
