"""Audio output."""

from .beeper import TONE_FREQUENCY_HZ, ToneBeeper, build_tone_samples

__all__ = ["TONE_FREQUENCY_HZ", "ToneBeeper", "build_tone_samples"]
