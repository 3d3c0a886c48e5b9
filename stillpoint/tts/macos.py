"""macOS native text-to-speech using the 'say' command."""

import logging
import re
import subprocess

logger = logging.getLogger(__name__)


class MacOSSpeech:
    """Speech sink using the macOS 'say' command.

    Each utterance runs as its own background process; a new utterance
    terminates the previous one so at most one voice is audible.
    """

    def __init__(
        self,
        voice: str = "Samantha",
        base_wpm: int = 180,
    ):
        """Initialize macOS speech.

        Args:
            voice: Voice name (e.g., "Samantha", "Ava", "Alex")
            base_wpm: Words per minute at rate 1.0
        """
        self.voice = voice
        self.base_wpm = base_wpm
        self._process: subprocess.Popen | None = None

    def words_per_minute(self, rate: float) -> int:
        return max(60, int(round(self.base_wpm * rate)))

    def speak(self, text: str, rate: float = 1.0) -> None:
        """Start speaking text without waiting for it to finish.

        Args:
            text: Text to speak
            rate: Speaking rate multiplier
        """
        # Stop any current speech
        self.cancel()

        if not text.strip():
            return

        cmd = ["say", "-v", self.voice, "-r", str(self.words_per_minute(rate)), text]
        try:
            self._process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("Speech unavailable: %s", e)
            self._process = None

    def cancel(self) -> None:
        """Stop any current speech."""
        if self._process is not None:
            try:
                self._process.terminate()
            except ProcessLookupError:
                pass
            self._process = None

    def is_speaking(self) -> bool:
        """Check if currently speaking.

        Returns:
            True if an utterance process is still running
        """
        return self._process is not None and self._process.poll() is None

    @staticmethod
    def list_voices() -> list[dict]:
        """List available voices.

        Returns:
            List of dicts with 'name' and 'lang' keys.
        """
        result = subprocess.run(
            ["say", "-v", "?"],
            capture_output=True,
            text=True,
        )

        voices = []
        for line in result.stdout.strip().split("\n"):
            if not line:
                continue
            # Format: "Voice Name    xx_XX    # description"
            m = re.match(r"^(.+?)\s{2,}(\w{2}_\w{2})\s", line)
            if m:
                voices.append({"name": m.group(1).strip(), "lang": m.group(2)})

        return voices
