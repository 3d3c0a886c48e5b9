"""Configuration loading and management."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class TimerConfig:
    tick_interval_ms: int = 1000
    breathing_interval_ms: int = 100
    intro_delay_sec: int = 2
    guidance_tolerance_sec: int = 2
    conclusion_window_sec: int = 10


@dataclass
class VoiceConfig:
    enabled: bool = True
    engine: str = "macos"  # macos, console
    voice: str = "Samantha"
    rate: float = 0.8  # multiplier applied to base_wpm
    base_wpm: int = 180


@dataclass
class SoundConfig:
    enabled: bool = True
    sample_rate: int = 44100
    volume: float = 0.1


@dataclass
class StorageConfig:
    data_directory: str = "data"


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 4650


@dataclass
class Config:
    """Complete application configuration."""

    timer: TimerConfig = field(default_factory=TimerConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    sound: SoundConfig = field(default_factory=SoundConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses default.yaml

    Returns:
        Loaded configuration
    """
    if path is None:
        # Try default locations
        candidates = [
            Path("config/default.yaml"),
            Path("config.yaml"),
            Path.home() / ".config" / "stillpoint" / "config.yaml",
        ]
        for candidate in candidates:
            if candidate.exists():
                path = candidate
                break

    config = Config()

    if path is not None and Path(path).exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if "timer" in data:
            config.timer = _update_dataclass(TimerConfig(), data["timer"])
        if "voice" in data:
            config.voice = _update_dataclass(VoiceConfig(), data["voice"])
        if "sound" in data:
            config.sound = _update_dataclass(SoundConfig(), data["sound"])
        if "storage" in data:
            config.storage = _update_dataclass(StorageConfig(), data["storage"])
        if "web" in data:
            config.web = _update_dataclass(WebConfig(), data["web"])

    return config


def _update_dataclass(instance: Any, data: dict) -> Any:
    """Update dataclass instance from dictionary."""
    for key, value in (data or {}).items():
        if hasattr(instance, key):
            setattr(instance, key, value)
    return instance
