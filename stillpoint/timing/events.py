"""Session events and the subscriber registry that delivers them."""

import logging
from dataclasses import dataclass
from typing import Callable, Union

from ..presets import Preset
from .breathing import PhaseChanged
from .guidance import SpeechCue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionStarted:
    preset: Preset
    total_seconds: int


@dataclass(frozen=True)
class TimerTick:
    remaining_seconds: int
    elapsed_seconds: int


@dataclass(frozen=True)
class SessionPaused:
    remaining_seconds: int


@dataclass(frozen=True)
class SessionResumed:
    remaining_seconds: int


@dataclass(frozen=True)
class GuidanceSpoken:
    cue: SpeechCue


@dataclass(frozen=True)
class SessionFinished:
    """A run ended, either naturally or by stop()."""

    preset: Preset
    actual_duration_seconds: int
    completed: bool


@dataclass(frozen=True)
class SessionRecorded:
    session_id: str
    completed: bool


@dataclass(frozen=True)
class RecordingFailed:
    error: str


SessionEvent = Union[
    SessionStarted,
    TimerTick,
    SessionPaused,
    SessionResumed,
    PhaseChanged,
    GuidanceSpoken,
    SessionFinished,
    SessionRecorded,
    RecordingFailed,
]

Listener = Callable[[SessionEvent], None]


class Subscription:
    """Handle returned by subscribe(); unsubscribe() detaches the listener.

    Also usable as a context manager.
    """

    def __init__(self, bus: "EventBus", listener: Listener):
        self._bus = bus
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._bus._remove(self._listener)
            self._active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class EventBus:
    """Delivers session events to listeners in subscription order."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, event: SessionEvent) -> None:
        """Send an event to every listener.

        A failing listener is logged and skipped; it never reaches the clock.
        """
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %s", type(event).__name__)
