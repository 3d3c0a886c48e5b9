"""Session history, goals, badges and their persistence."""

from .models import (
    Badge,
    CompletedSession,
    Goal,
    GoalMetric,
    GoalType,
    UserBadge,
    UserSettings,
    VoiceSettings,
)
from .recorder import SessionRecorder
from .store import DataStore, JsonDataStore, StoreError, open_store

__all__ = [
    "Badge",
    "CompletedSession",
    "DataStore",
    "Goal",
    "GoalMetric",
    "GoalType",
    "JsonDataStore",
    "SessionRecorder",
    "StoreError",
    "UserBadge",
    "UserSettings",
    "VoiceSettings",
    "open_store",
]
