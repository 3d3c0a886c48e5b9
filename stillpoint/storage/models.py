"""Records kept by the data store."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_time(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class VoiceSettings:
    enabled: bool = True
    rate: float = 0.8

    def to_dict(self) -> dict:
        return {"enabled": self.enabled, "rate": self.rate}


@dataclass(frozen=True)
class CompletedSession:
    """A finished session run.

    Immutable once recorded; only ``notes`` may be patched afterwards.
    """

    preset_id: str
    actual_duration_seconds: int
    completed: bool
    voice_settings: VoiceSettings = field(default_factory=VoiceSettings)
    sound_enabled: bool = True
    notes: str | None = None
    session_date: datetime = field(default_factory=utcnow)
    id: str = ""

    @property
    def minutes(self) -> float:
        return self.actual_duration_seconds / 60

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "preset_id": self.preset_id,
            "duration": self.actual_duration_seconds,
            "completed": self.completed,
            "voice_settings": self.voice_settings.to_dict(),
            "sound_enabled": self.sound_enabled,
            "notes": self.notes,
            "session_date": self.session_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedSession":
        voice = data.get("voice_settings") or {}
        return cls(
            id=data.get("id", ""),
            preset_id=data["preset_id"],
            actual_duration_seconds=int(data["duration"]),
            completed=bool(data["completed"]),
            voice_settings=VoiceSettings(
                enabled=voice.get("enabled", True),
                rate=voice.get("rate", 0.8),
            ),
            sound_enabled=data.get("sound_enabled", True),
            notes=data.get("notes"),
            session_date=_parse_time(data["session_date"]),
        )


class GoalType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class GoalMetric(str, Enum):
    MINUTES = "minutes"
    SESSIONS = "sessions"


@dataclass(frozen=True)
class Goal:
    type: GoalType
    target: int
    metric: GoalMetric
    start_date: datetime
    end_date: datetime
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "target": self.target,
            "metric": self.metric.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "active": self.active,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Goal":
        return cls(
            id=data.get("id", ""),
            type=GoalType(data["type"]),
            target=int(data["target"]),
            metric=GoalMetric(data["metric"]),
            start_date=_parse_time(data["start_date"]),
            end_date=_parse_time(data["end_date"]),
            active=data.get("active", True),
            created_at=_parse_time(data.get("created_at") or data["start_date"]),
        )


class RequirementType(str, Enum):
    STREAK = "streak"
    TOTAL_SESSIONS = "total_sessions"
    TOTAL_MINUTES = "total_minutes"
    COMPLETION_RATE = "completion_rate"


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    description: str
    icon: str
    requirement_type: RequirementType
    requirement_value: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "requirement_type": self.requirement_type.value,
            "requirement_value": self.requirement_value,
        }


@dataclass(frozen=True)
class UserBadge:
    badge_id: str
    earned_date: datetime = field(default_factory=utcnow)
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "badge_id": self.badge_id,
            "earned_date": self.earned_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserBadge":
        return cls(
            id=data.get("id", ""),
            badge_id=data["badge_id"],
            earned_date=_parse_time(data["earned_date"]),
        )


@dataclass
class UserSettings:
    speech_rate: float = 0.8
    voice_enabled: bool = True
    sound_enabled: bool = True
    selected_voice: str | None = None

    def to_dict(self) -> dict:
        return {
            "speech_rate": self.speech_rate,
            "voice_enabled": self.voice_enabled,
            "sound_enabled": self.sound_enabled,
            "selected_voice": self.selected_voice,
        }

    @classmethod
    def from_dict(cls, data: dict, base: "UserSettings | None" = None) -> "UserSettings":
        settings = replace(base) if base is not None else cls()
        for key, value in data.items():
            if hasattr(settings, key):
                setattr(settings, key, value)
        return settings


DEFAULT_BADGES: tuple[Badge, ...] = (
    Badge(
        id="first-session",
        name="First Steps",
        description="Complete your first meditation session",
        icon="🌱",
        requirement_type=RequirementType.TOTAL_SESSIONS,
        requirement_value=1,
    ),
    Badge(
        id="week-warrior",
        name="Week Warrior",
        description="Maintain a 7-day meditation streak",
        icon="🔥",
        requirement_type=RequirementType.STREAK,
        requirement_value=7,
    ),
    Badge(
        id="mindful-master",
        name="Mindful Master",
        description="Complete 50 meditation sessions",
        icon="🧘",
        requirement_type=RequirementType.TOTAL_SESSIONS,
        requirement_value=50,
    ),
    Badge(
        id="time-keeper",
        name="Time Keeper",
        description="Meditate for 10 hours total",
        icon="⏰",
        requirement_type=RequirementType.TOTAL_MINUTES,
        requirement_value=600,
    ),
    Badge(
        id="consistency-champion",
        name="Consistency Champion",
        description="Achieve 95% completion rate with 20+ sessions",
        icon="🏆",
        requirement_type=RequirementType.COMPLETION_RATE,
        requirement_value=95,
    ),
    Badge(
        id="zen-master",
        name="Zen Master",
        description="Maintain a 30-day meditation streak",
        icon="🌟",
        requirement_type=RequirementType.STREAK,
        requirement_value=30,
    ),
)
