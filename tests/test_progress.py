"""
Tests for progress statistics, streaks, goals, badges and the calendar
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from stillpoint.storage import CompletedSession, GoalMetric, GoalType
from stillpoint.storage.models import DEFAULT_BADGES
from stillpoint.storage.progress import (
    calendar_month,
    current_streak,
    evaluate_badges,
    goal_end_date,
    goal_progress,
    new_goal,
    progress_stats,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def session_at(when, seconds=600, completed=True):
    return CompletedSession(
        preset_id="mindfulness-10",
        actual_duration_seconds=seconds,
        completed=completed,
        session_date=when,
    )


def days_ago(*offsets, **kwargs):
    return [session_at(NOW - timedelta(days=d), **kwargs) for d in offsets]


def badge(badge_id):
    return next(b for b in DEFAULT_BADGES if b.id == badge_id)


class TestStats:
    def test_totals(self):
        sessions = days_ago(0, 1) + days_ago(2, seconds=300, completed=False)
        stats = progress_stats(sessions, NOW)

        assert stats.total_sessions == 3
        assert stats.completed_sessions == 2
        assert stats.total_minutes == 25

    def test_week_and_month_windows(self):
        sessions = days_ago(1, 6, 10, 29, 45)
        stats = progress_stats(sessions, NOW)

        assert stats.sessions_this_week == 2
        assert stats.sessions_this_month == 4

    def test_empty_history(self):
        stats = progress_stats([], NOW)
        assert stats.total_sessions == 0
        assert stats.total_minutes == 0


class TestStreak:
    def test_consecutive_days_including_today(self):
        assert current_streak(days_ago(0, 1, 2), TODAY) == 3

    def test_streak_ending_yesterday_still_counts(self):
        assert current_streak(days_ago(1, 2), TODAY) == 2

    def test_gap_breaks_streak(self):
        assert current_streak(days_ago(0, 1, 3, 4), TODAY) == 2

    def test_two_day_gap_is_zero(self):
        assert current_streak(days_ago(2, 3), TODAY) == 0

    def test_several_sessions_one_day(self):
        assert current_streak(days_ago(0, 0, 0), TODAY) == 1


class TestGoals:
    def test_daily_and_weekly_windows(self):
        start = datetime(2026, 10, 18, tzinfo=timezone.utc)
        assert goal_end_date(GoalType.DAILY, start) == start + timedelta(days=1)
        assert goal_end_date(GoalType.WEEKLY, start) == start + timedelta(days=7)

    def test_monthly_window_clamps_day(self):
        start = datetime(2026, 1, 31, tzinfo=timezone.utc)
        assert goal_end_date(GoalType.MONTHLY, start) == datetime(2026, 2, 28, tzinfo=timezone.utc)

    def test_monthly_window_wraps_year(self):
        start = datetime(2026, 12, 15, tzinfo=timezone.utc)
        assert goal_end_date(GoalType.MONTHLY, start) == datetime(2027, 1, 15, tzinfo=timezone.utc)

    def test_target_must_be_positive(self):
        with pytest.raises(ValueError):
            new_goal(GoalType.DAILY, 0, GoalMetric.MINUTES)

    def test_minutes_progress(self):
        goal = new_goal(GoalType.WEEKLY, 30, GoalMetric.MINUTES, start=NOW - timedelta(days=3))
        sessions = days_ago(1, 2) + days_ago(5)
        progress = goal_progress(goal, sessions)

        assert progress.value == 20
        assert progress.percent == pytest.approx(66.7)
        assert not progress.achieved

    def test_sessions_progress_caps_percent(self):
        goal = new_goal(GoalType.WEEKLY, 2, GoalMetric.SESSIONS, start=NOW - timedelta(days=3))
        progress = goal_progress(goal, days_ago(0, 1, 2))

        assert progress.value == 3
        assert progress.percent == 100.0
        assert progress.achieved


class TestBadges:
    def test_first_session(self):
        earned = evaluate_badges(DEFAULT_BADGES, days_ago(0), set(), TODAY)
        assert [b.id for b in earned] == ["first-session"]

    def test_already_earned_is_skipped(self):
        earned = evaluate_badges(DEFAULT_BADGES, days_ago(0), {"first-session"}, TODAY)
        assert earned == []

    def test_week_streak(self):
        earned = evaluate_badges([badge("week-warrior")], days_ago(*range(7)), set(), TODAY)
        assert len(earned) == 1

    def test_time_keeper_needs_ten_hours(self):
        sessions = days_ago(*range(59))
        assert evaluate_badges([badge("time-keeper")], sessions, set(), TODAY) == []
        sessions += days_ago(60)
        assert len(evaluate_badges([badge("time-keeper")], sessions, set(), TODAY)) == 1

    def test_completion_rate_needs_twenty_sessions(self):
        champion = badge("consistency-champion")
        assert evaluate_badges([champion], days_ago(*range(19)), set(), TODAY) == []
        assert len(evaluate_badges([champion], days_ago(*range(20)), set(), TODAY)) == 1

    def test_completion_rate_threshold(self):
        champion = badge("consistency-champion")
        sessions = days_ago(*range(18)) + days_ago(30, 31, completed=False)
        assert evaluate_badges([champion], sessions, set(), TODAY) == []


class TestCalendar:
    def test_october_2026_starts_thursday(self):
        cells = calendar_month([], 2026, 10)
        assert cells[:4] == [None, None, None, None]
        assert cells[4]["day"] == 1
        assert len(cells) == 4 + 31

    def test_month_starting_sunday_has_no_padding(self):
        cells = calendar_month([], 2026, 2)
        assert cells[0]["date"] == date(2026, 2, 1).isoformat()
        assert len(cells) == 28

    def test_days_marked(self):
        sessions = [
            session_at(datetime(2026, 10, 5, 7, tzinfo=timezone.utc)),
            session_at(datetime(2026, 10, 6, 7, tzinfo=timezone.utc), completed=False),
        ]
        cells = [c for c in calendar_month(sessions, 2026, 10) if c is not None]

        assert cells[4]["has_completed_session"]
        assert cells[5]["has_session"] and not cells[5]["has_completed_session"]
        assert not cells[6]["has_session"]
