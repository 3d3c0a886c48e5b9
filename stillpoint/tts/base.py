"""Base protocol for speech sinks."""

from typing import Protocol


class SpeechSink(Protocol):
    """Protocol for text-to-speech output used during a session.

    Both methods return immediately; speech plays in the background.
    """

    def speak(self, text: str, rate: float) -> None:
        """Speak the given text, cancelling anything still being spoken.

        Args:
            text: Text to speak
            rate: Speaking rate multiplier (1.0 = engine default)
        """
        ...

    def cancel(self) -> None:
        """Stop any current speech."""
        ...

    def is_speaking(self) -> bool:
        """Check if currently speaking."""
        ...
