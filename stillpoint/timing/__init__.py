"""Session timing: countdown, breathing phases and guided prompts."""

from .breathing import BreathingCycler, BreathingCycleState, BreathingPhase, PhaseChanged
from .clock import ClockState, SessionClock
from .events import (
    EventBus,
    GuidanceSpoken,
    RecordingFailed,
    SessionFinished,
    SessionRecorded,
    Subscription,
    TimerTick,
)
from .guidance import DispatchTiming, SpeechCue, dispatch
from .runner import SessionRunner
from .session import SessionController

__all__ = [
    "BreathingCycler",
    "BreathingCycleState",
    "BreathingPhase",
    "PhaseChanged",
    "ClockState",
    "SessionClock",
    "EventBus",
    "GuidanceSpoken",
    "RecordingFailed",
    "SessionFinished",
    "SessionRecorded",
    "Subscription",
    "TimerTick",
    "DispatchTiming",
    "SpeechCue",
    "dispatch",
    "SessionRunner",
    "SessionController",
]
