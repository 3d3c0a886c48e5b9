"""Progress statistics, streaks, goal tracking and badge evaluation.

All functions are pure over a list of CompletedSession records. Calendar
days are taken in UTC.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

from .models import (
    Badge,
    CompletedSession,
    Goal,
    GoalMetric,
    GoalType,
    RequirementType,
    utcnow,
)

# Completion-rate badges only count once there is enough history
MIN_SESSIONS_FOR_COMPLETION_RATE = 20


@dataclass(frozen=True)
class ProgressStats:
    total_sessions: int
    completed_sessions: int
    total_minutes: int
    sessions_this_week: int
    sessions_this_month: int

    def to_dict(self) -> dict:
        return {
            "total_sessions": self.total_sessions,
            "completed_sessions": self.completed_sessions,
            "total_minutes": self.total_minutes,
            "sessions_this_week": self.sessions_this_week,
            "sessions_this_month": self.sessions_this_month,
        }


@dataclass(frozen=True)
class GoalProgress:
    goal: Goal
    value: float
    percent: float
    achieved: bool

    def to_dict(self) -> dict:
        return {
            "goal": self.goal.to_dict(),
            "value": self.value,
            "percent": self.percent,
            "achieved": self.achieved,
        }


def session_day(session: CompletedSession) -> date:
    return session.session_date.astimezone(timezone.utc).date()


def progress_stats(sessions: list[CompletedSession], now: datetime | None = None) -> ProgressStats:
    """Summarize session history.

    Args:
        sessions: Session history
        now: Reference time for the weekly/monthly windows

    Returns:
        Totals plus counts for the last 7 and 30 days
    """
    now = now or utcnow()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    return ProgressStats(
        total_sessions=len(sessions),
        completed_sessions=sum(1 for s in sessions if s.completed),
        total_minutes=round(sum(s.minutes for s in sessions)),
        sessions_this_week=sum(1 for s in sessions if s.session_date >= week_ago),
        sessions_this_month=sum(1 for s in sessions if s.session_date >= month_ago),
    )


def current_streak(sessions: Iterable[CompletedSession], today: date | None = None) -> int:
    """Consecutive days with at least one session, ending today.

    A streak that ended yesterday still counts; the meditator has until the
    end of today to extend it.
    """
    today = today or utcnow().date()
    days = {session_day(s) for s in sessions}

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def goal_end_date(goal_type: GoalType, start: datetime) -> datetime:
    """End of a goal's window: one day, seven days or one calendar month."""
    if goal_type == GoalType.DAILY:
        return start + timedelta(days=1)
    if goal_type == GoalType.WEEKLY:
        return start + timedelta(days=7)

    year = start.year + (1 if start.month == 12 else 0)
    month = 1 if start.month == 12 else start.month + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def new_goal(goal_type: GoalType, target: int, metric: GoalMetric, start: datetime | None = None) -> Goal:
    """Build an unsaved goal starting now."""
    if target <= 0:
        raise ValueError("Goal target must be positive")
    start = start or utcnow()
    return Goal(
        type=goal_type,
        target=target,
        metric=metric,
        start_date=start,
        end_date=goal_end_date(goal_type, start),
        created_at=start,
    )


def goal_progress(goal: Goal, sessions: Iterable[CompletedSession]) -> GoalProgress:
    """How far the sessions inside a goal's window get toward its target."""
    in_window = [s for s in sessions if goal.start_date <= s.session_date < goal.end_date]

    if goal.metric == GoalMetric.MINUTES:
        value = round(sum(s.minutes for s in in_window), 1)
    else:
        value = len(in_window)

    percent = min(100.0, round(value / goal.target * 100, 1)) if goal.target else 0.0
    return GoalProgress(
        goal=goal,
        value=value,
        percent=percent,
        achieved=value >= goal.target,
    )


def badge_met(badge: Badge, sessions: list[CompletedSession], today: date | None = None) -> bool:
    """Check whether the session history satisfies a badge's requirement."""
    if badge.requirement_type == RequirementType.TOTAL_SESSIONS:
        return len(sessions) >= badge.requirement_value

    if badge.requirement_type == RequirementType.TOTAL_MINUTES:
        return sum(s.minutes for s in sessions) >= badge.requirement_value

    if badge.requirement_type == RequirementType.STREAK:
        return current_streak(sessions, today) >= badge.requirement_value

    if badge.requirement_type == RequirementType.COMPLETION_RATE:
        if len(sessions) < MIN_SESSIONS_FOR_COMPLETION_RATE:
            return False
        rate = sum(1 for s in sessions if s.completed) / len(sessions) * 100
        return rate >= badge.requirement_value

    return False


def evaluate_badges(
    badges: Iterable[Badge],
    sessions: list[CompletedSession],
    earned_ids: set[str],
    today: date | None = None,
) -> list[Badge]:
    """Badges whose requirement is met but which have not been earned yet."""
    return [
        badge
        for badge in badges
        if badge.id not in earned_ids and badge_met(badge, sessions, today)
    ]


def calendar_month(sessions: Iterable[CompletedSession], year: int, month: int) -> list[dict | None]:
    """Cells for a month view, weeks starting on Sunday.

    Leading ``None`` cells pad the first week; every day of the month then
    gets a dict with its sessions.
    """
    by_day: dict[date, list[CompletedSession]] = {}
    for session in sessions:
        by_day.setdefault(session_day(session), []).append(session)

    first_weekday, days_in_month = calendar.monthrange(year, month)
    # calendar.monthrange counts Monday as 0
    leading = (first_weekday + 1) % 7

    cells: list[dict | None] = [None] * leading
    for day in range(1, days_in_month + 1):
        current = date(year, month, day)
        day_sessions = by_day.get(current, [])
        cells.append({
            "day": day,
            "date": current.isoformat(),
            "sessions": day_sessions,
            "has_session": bool(day_sessions),
            "has_completed_session": any(s.completed for s in day_sessions),
        })
    return cells
