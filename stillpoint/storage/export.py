"""CSV and JSON export of a meditator's data."""

import csv
import io
import json
from datetime import datetime, timezone

from ..presets import Preset
from .models import CompletedSession
from .store import JsonDataStore

CSV_HEADERS = [
    "Date",
    "Meditation Type",
    "Duration (min)",
    "Completed",
    "Voice Enabled",
    "Voice Rate",
    "Notes",
]


def export_filename(extension: str, when: datetime | None = None) -> str:
    when = when or datetime.now(timezone.utc)
    return f"meditation-data-{when.date().isoformat()}.{extension}"


def collect_export(store: JsonDataStore) -> dict:
    """Everything stored for the meditator, as plain data."""
    presets = {p.id: p for p in store.load_presets()}
    badges = {b.id: b for b in store.list_badges()}

    sessions = []
    for session in store.list_sessions():
        row = session.to_dict()
        preset = presets.get(session.preset_id)
        row["preset"] = preset.to_dict() if preset else None
        sessions.append(row)

    user_badges = []
    for earned in store.list_user_badges():
        row = earned.to_dict()
        badge = badges.get(earned.badge_id)
        row["badge"] = badge.to_dict() if badge else None
        user_badges.append(row)

    return {
        "sessions": sessions,
        "goals": [g.to_dict() for g in store.list_goals()],
        "badges": user_badges,
        "settings": store.load_settings().to_dict(),
        "exportDate": datetime.now(timezone.utc).isoformat(),
    }


def export_json(data: dict) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def export_csv(sessions: list[CompletedSession], presets: list[Preset]) -> str:
    """One row per session; every field is quoted."""
    names = {p.id: p.name for p in presets}

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for session in sessions:
        writer.writerow([
            session.session_date.date().isoformat(),
            names.get(session.preset_id, "Unknown"),
            round(session.minutes),
            "Yes" if session.completed else "No",
            "Yes" if session.voice_settings.enabled else "No",
            f"{session.voice_settings.rate:.1f}",
            session.notes or "",
        ])
    return buffer.getvalue()
