"""Notification tones.

Uses numpy to synthesize a short sine tone and sounddevice to play it.
sd.play() returns immediately, so tones never block a tick.
"""

import logging
from typing import Protocol

import numpy as np
import sounddevice as sd

logger = logging.getLogger(__name__)

# (frequency_hz, duration_ms)
START_TONE = (523.25, 300)  # C5
INHALE_TONE = (523.25, 150)  # C5
EXHALE_TONE = (392.0, 150)  # G4
COMPLETION_TONE = (659.25, 500)  # E5


class ToneSink(Protocol):
    """Protocol for fire-and-forget notification tones."""

    def play_tone(self, frequency_hz: float, duration_ms: int) -> None:
        ...


def synthesize_tone(
    frequency_hz: float,
    duration_ms: int,
    sample_rate: int = 44100,
    volume: float = 0.1,
    attack_ms: float = 10.0,
) -> np.ndarray:
    """Build a float32 sine tone with a short attack and exponential decay.

    The envelope ramps linearly to ``volume`` over ``attack_ms`` then decays
    exponentially down to 0.001 at the end of the tone.
    """
    n = max(1, int(sample_rate * duration_ms / 1000))
    t = np.arange(n, dtype=np.float32) / sample_rate
    wave = np.sin(2 * np.pi * frequency_hz * t)

    attack = max(1, min(n, int(sample_rate * attack_ms / 1000)))
    envelope = np.empty(n, dtype=np.float32)
    envelope[:attack] = np.linspace(0.0, volume, attack, endpoint=False)
    decay = n - attack
    if decay > 0:
        envelope[attack:] = np.geomspace(volume, 0.001, decay)

    return (wave * envelope).astype(np.float32)


class SoundDeviceTonePlayer:
    """Plays tones on the default output device."""

    def __init__(self, sample_rate: int = 44100, volume: float = 0.1):
        self.sample_rate = sample_rate
        self.volume = volume

    def play_tone(self, frequency_hz: float, duration_ms: int) -> None:
        data = synthesize_tone(
            frequency_hz,
            duration_ms,
            sample_rate=self.sample_rate,
            volume=self.volume,
        )
        try:
            sd.play(data, self.sample_rate)
        except Exception as e:
            # No audio device (headless host, CI): tones degrade to silence
            logger.warning("Tone playback unavailable: %s", e)


class SilentTonePlayer:
    """Tone sink that plays nothing."""

    def play_tone(self, frequency_hz: float, duration_ms: int) -> None:
        pass


def stop_tones() -> None:
    """Stop any tone still playing."""
    try:
        sd.stop()
    except Exception as e:
        logger.debug("Could not stop tones: %s", e)
