"""Console speech sink (prints instead of speaking)."""


class ConsoleSpeech:
    """Speech sink for terminals and tests without audio output."""

    def __init__(self, prefix: str = "Guide"):
        self.prefix = prefix
        self.last_text: str | None = None

    def speak(self, text: str, rate: float) -> None:
        if not text.strip():
            return
        self.last_text = text
        print(f"\n  {self.prefix}: {text}", flush=True)

    def cancel(self) -> None:
        self.last_text = None

    def is_speaking(self) -> bool:
        return False
