"""Text-to-speech sinks for guided sessions."""

from .base import SpeechSink
from .console import ConsoleSpeech
from .macos import MacOSSpeech

__all__ = [
    "SpeechSink",
    "ConsoleSpeech",
    "MacOSSpeech",
    "create_speech",
]


def create_speech(
    engine: str = "macos",
    voice: str | None = None,
    base_wpm: int = 180,
) -> "MacOSSpeech | ConsoleSpeech":
    """Factory function to create a speech sink.

    Args:
        engine: Speech engine name:
            - "macos": macOS native 'say' command
            - "console": print prompts to the terminal
        voice: Voice name (engine-specific)
        base_wpm: Words per minute at rate 1.0 (macos only)

    Returns:
        Speech sink instance
    """
    if engine == "macos":
        return MacOSSpeech(
            voice=voice or "Samantha",
            base_wpm=base_wpm,
        )

    elif engine == "console":
        return ConsoleSpeech()

    else:
        raise ValueError(
            f"Unknown speech engine: {engine}. "
            f"Available: macos, console"
        )
