"""Persistence for session history, goals, badges and settings."""

import json
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Protocol

from ..config import Config
from ..presets import DEFAULT_PRESETS, GUIDED_SCRIPTS, GuidedScript, Preset
from .models import (
    DEFAULT_BADGES,
    Badge,
    CompletedSession,
    Goal,
    UserBadge,
    UserSettings,
    utcnow,
)


class StoreError(Exception):
    """Raised when a record cannot be found or written."""


class DataStore(Protocol):
    """What the session core needs from persistence."""

    def record_session(self, session: CompletedSession) -> str:
        ...

    def list_sessions(self) -> list[CompletedSession]:
        ...

    def update_session_notes(self, session_id: str, notes: str) -> CompletedSession:
        ...

    def list_badges(self) -> list[Badge]:
        ...

    def list_user_badges(self) -> list[UserBadge]:
        ...

    def award_badge(self, badge_id: str, earned_date: datetime | None = None) -> UserBadge:
        ...

    def load_presets(self) -> list[Preset]:
        ...

    def load_scripts(self) -> dict[str, GuidedScript]:
        ...


def open_store(config: Config) -> "JsonDataStore":
    """Store for the configured data directory, defaulting to the configured voice rate."""
    return JsonDataStore(
        config.storage.data_directory,
        default_settings=UserSettings(speech_rate=config.voice.rate),
    )


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class JsonDataStore:
    """Keeps each collection in its own JSON file.

    Layout of ``data_directory``:
        sessions.json, goals.json, user_badges.json, settings.json
    """

    def __init__(
        self,
        data_directory: str | Path = "data",
        default_settings: UserSettings | None = None,
    ):
        """Initialize the store.

        Args:
            data_directory: Directory holding the JSON files
            default_settings: Settings returned until some are saved
        """
        self.data_directory = Path(data_directory)
        self.default_settings = default_settings or UserSettings()
        self.data_directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    # Reference data

    def load_presets(self) -> list[Preset]:
        return list(DEFAULT_PRESETS)

    def load_scripts(self) -> dict[str, GuidedScript]:
        return dict(GUIDED_SCRIPTS)

    def list_badges(self) -> list[Badge]:
        return sorted(DEFAULT_BADGES, key=lambda b: b.requirement_value)

    # Sessions

    def record_session(self, session: CompletedSession) -> str:
        """Save a finished session.

        Returns:
            The id assigned to the stored session
        """
        with self._lock:
            stored = replace(session, id=session.id or _new_id("session"))
            rows = self._read("sessions")
            rows.append(stored.to_dict())
            self._write("sessions", rows)
        return stored.id

    def list_sessions(self) -> list[CompletedSession]:
        """All sessions, newest first."""
        with self._lock:
            sessions = [CompletedSession.from_dict(row) for row in self._read("sessions")]
        return sorted(sessions, key=lambda s: s.session_date, reverse=True)

    def get_session(self, session_id: str) -> CompletedSession:
        for session in self.list_sessions():
            if session.id == session_id:
                return session
        raise StoreError(f"Session not found: {session_id}")

    def update_session_notes(self, session_id: str, notes: str) -> CompletedSession:
        with self._lock:
            rows = self._read("sessions")
            for row in rows:
                if row.get("id") == session_id:
                    row["notes"] = notes
                    self._write("sessions", rows)
                    return CompletedSession.from_dict(row)
        raise StoreError(f"Session not found: {session_id}")

    # Goals

    def create_goal(self, goal: Goal) -> Goal:
        with self._lock:
            stored = replace(goal, id=goal.id or _new_id("goal"))
            rows = self._read("goals")
            rows.append(stored.to_dict())
            self._write("goals", rows)
        return stored

    def list_goals(self, include_inactive: bool = False) -> list[Goal]:
        """Goals, newest first. Cancelled goals are hidden by default."""
        with self._lock:
            goals = [Goal.from_dict(row) for row in self._read("goals")]
        if not include_inactive:
            goals = [g for g in goals if g.active]
        return sorted(goals, key=lambda g: g.created_at, reverse=True)

    def cancel_goal(self, goal_id: str) -> Goal:
        with self._lock:
            rows = self._read("goals")
            for row in rows:
                if row.get("id") == goal_id:
                    row["active"] = False
                    self._write("goals", rows)
                    return Goal.from_dict(row)
        raise StoreError(f"Goal not found: {goal_id}")

    # Badges

    def list_user_badges(self) -> list[UserBadge]:
        with self._lock:
            return [UserBadge.from_dict(row) for row in self._read("user_badges")]

    def award_badge(self, badge_id: str, earned_date: datetime | None = None) -> UserBadge:
        """Record a badge as earned. Awarding the same badge twice is a no-op."""
        if badge_id not in {b.id for b in DEFAULT_BADGES}:
            raise StoreError(f"Unknown badge: {badge_id}")

        with self._lock:
            rows = self._read("user_badges")
            for row in rows:
                if row.get("badge_id") == badge_id:
                    return UserBadge.from_dict(row)

            earned = UserBadge(
                id=_new_id("user_badge"),
                badge_id=badge_id,
                earned_date=earned_date or utcnow(),
            )
            rows.append(earned.to_dict())
            self._write("user_badges", rows)
        return earned

    # Settings

    def load_settings(self) -> UserSettings:
        with self._lock:
            path = self._path("settings")
            if not path.exists():
                return replace(self.default_settings)
            with open(path) as f:
                return UserSettings.from_dict(json.load(f), base=self.default_settings)

    def save_settings(self, settings: UserSettings) -> UserSettings:
        with self._lock:
            with open(self._path("settings"), "w") as f:
                json.dump(settings.to_dict(), f, indent=2)
        return settings

    def delete_all(self) -> None:
        """Remove every stored session, goal, badge and setting."""
        with self._lock:
            for name in ("sessions", "goals", "user_badges", "settings"):
                self._path(name).unlink(missing_ok=True)

    # Files

    def _path(self, name: str) -> Path:
        return self.data_directory / f"{name}.json"

    def _read(self, name: str) -> list[dict]:
        path = self._path(name)
        if not path.exists():
            return []
        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt data file {path}: {e}") from e
        return data if isinstance(data, list) else []

    def _write(self, name: str, rows: list[dict]) -> None:
        path = self._path(name)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(rows, f, indent=2, default=str)
        tmp.replace(path)
