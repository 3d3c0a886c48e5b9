"""
Pytest configuration and fixtures

Timing tests never sleep: a FakeClock stands in for the wall clock and is
advanced explicitly, and recording sinks capture tones and speech.
"""
import pytest

from stillpoint.presets import BreathingPattern, Preset, SessionType, get_preset
from stillpoint.storage import JsonDataStore, SessionRecorder, VoiceSettings
from stillpoint.timing import SessionController

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond wall clock advanced by hand."""

    def __init__(self, start_ms: int = START_MS):
        self.ms = start_ms

    def __call__(self) -> float:
        return self.ms

    def advance(self, seconds: float) -> None:
        self.ms += int(round(seconds * 1000))

    def advance_ms(self, ms: int) -> None:
        self.ms += ms


class RecordingSpeech:
    def __init__(self):
        self.spoken: list[tuple[str, float]] = []
        self.cancels = 0

    def speak(self, text: str, rate: float) -> None:
        self.spoken.append((text, rate))

    def cancel(self) -> None:
        self.cancels += 1

    def is_speaking(self) -> bool:
        return False


class RecordingTones:
    def __init__(self):
        self.played: list[tuple[float, int]] = []

    def play_tone(self, frequency_hz: float, duration_ms: int) -> None:
        self.played.append((frequency_hz, duration_ms))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def speech():
    return RecordingSpeech()


@pytest.fixture
def tones():
    return RecordingTones()


@pytest.fixture
def store(tmp_path):
    return JsonDataStore(tmp_path / "data")


@pytest.fixture
def recorder(store):
    rec = SessionRecorder(store)
    yield rec
    rec.shutdown(wait=True)


@pytest.fixture
def box_breathing():
    return get_preset("box-breathing")


@pytest.fixture
def mindfulness():
    return get_preset("mindfulness-5")


@pytest.fixture
def five_minute_unguided():
    return Preset(
        id="quiet-5",
        name="Quiet Sitting",
        description="No guidance",
        duration_minutes=5,
        type=SessionType.MINDFULNESS,
    )


@pytest.fixture
def breathing_preset():
    def _make(inhale, hold1, exhale, hold2, minutes=5):
        return Preset(
            id="custom-breathing",
            name="Custom Breathing",
            description="Test pattern",
            duration_minutes=minutes,
            type=SessionType.BREATHING,
            breathing_pattern=BreathingPattern(inhale, hold1, exhale, hold2),
        )
    return _make


@pytest.fixture
def controller(fake_clock, speech, tones, recorder):
    return SessionController(
        tones=tones,
        speech=speech,
        recorder=recorder,
        voice=VoiceSettings(enabled=True, rate=0.8),
        sound_enabled=True,
        clock=fake_clock,
    )
