"""Notification tone output."""

from .tones import (
    COMPLETION_TONE,
    EXHALE_TONE,
    INHALE_TONE,
    START_TONE,
    SilentTonePlayer,
    SoundDeviceTonePlayer,
    ToneSink,
    synthesize_tone,
)

__all__ = [
    "COMPLETION_TONE",
    "EXHALE_TONE",
    "INHALE_TONE",
    "START_TONE",
    "SilentTonePlayer",
    "SoundDeviceTonePlayer",
    "ToneSink",
    "synthesize_tone",
    "create_tone_player",
]


def create_tone_player(
    enabled: bool = True,
    sample_rate: int = 44100,
    volume: float = 0.1,
) -> "SoundDeviceTonePlayer | SilentTonePlayer":
    """Factory function to create a tone sink."""
    if not enabled:
        return SilentTonePlayer()
    return SoundDeviceTonePlayer(sample_rate=sample_rate, volume=volume)
