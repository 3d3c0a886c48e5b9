"""
Tests for tone synthesis and audio/speech factories
"""
import numpy as np
import pytest

from stillpoint.audio import SilentTonePlayer, SoundDeviceTonePlayer, create_tone_player, synthesize_tone
from stillpoint.tts import ConsoleSpeech, MacOSSpeech, create_speech


class TestSynthesis:
    def test_length_matches_duration(self):
        data = synthesize_tone(523.25, 300, sample_rate=44100)
        assert data.dtype == np.float32
        assert len(data) == 13230

    def test_peak_within_volume(self):
        data = synthesize_tone(392.0, 150, volume=0.1)
        assert np.max(np.abs(data)) <= 0.1 + 1e-6

    def test_starts_silent_and_decays(self):
        data = synthesize_tone(659.25, 500, volume=0.2)
        assert abs(data[0]) == 0.0
        assert np.max(np.abs(data[-100:])) < 0.01

    def test_very_short_tone(self):
        data = synthesize_tone(440.0, 1, sample_rate=8000)
        assert len(data) == 8


class TestFactories:
    def test_disabled_sound_is_silent(self):
        assert isinstance(create_tone_player(enabled=False), SilentTonePlayer)

    def test_enabled_sound(self):
        player = create_tone_player(sample_rate=22050, volume=0.3)
        assert isinstance(player, SoundDeviceTonePlayer)
        assert player.sample_rate == 22050

    def test_console_speech(self, capsys):
        speech = create_speech("console")
        assert isinstance(speech, ConsoleSpeech)
        speech.speak("Breathe in.", 0.8)
        assert "Guide: Breathe in." in capsys.readouterr().out

    def test_macos_speech_rate(self):
        speech = create_speech("macos", voice="Ava", base_wpm=200)
        assert isinstance(speech, MacOSSpeech)
        assert speech.voice == "Ava"
        assert speech.words_per_minute(0.8) == 160
        assert speech.words_per_minute(0.1) == 60

    def test_unknown_engine(self):
        with pytest.raises(ValueError):
            create_speech("piper")


class BrokenDevice:
    def __init__(self):
        self.played = []

    def play(self, data, sample_rate):
        self.played.append((len(data), sample_rate))
        raise RuntimeError("no output device")

    def stop(self):
        raise RuntimeError("no output device")


class TestDevicePlayback:
    def test_plays_synthesized_tone(self, monkeypatch):
        from stillpoint.audio import tones

        device = BrokenDevice()
        monkeypatch.setattr(tones, "sd", device)
        SoundDeviceTonePlayer(sample_rate=8000).play_tone(440.0, 100)
        assert device.played == [(800, 8000)]

    def test_device_errors_degrade_to_silence(self, monkeypatch, caplog):
        from stillpoint.audio import tones

        monkeypatch.setattr(tones, "sd", BrokenDevice())
        SoundDeviceTonePlayer().play_tone(440.0, 50)
        tones.stop_tones()
        assert "Tone playback unavailable" in caplog.text
