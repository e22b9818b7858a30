"""Points, levels and study streaks."""
from dataclasses import replace
from datetime import date, timedelta

from flashcard_hub.models import ProgressState

POINTS_PER_LEVEL = 500


def level_for_points(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


def add_points(progress: ProgressState, delta: int) -> ProgressState:
    """Return a new state with delta applied, clamped at zero, and level recomputed."""
    points = max(0, progress.points + delta)
    return replace(progress, points=points, level=level_for_points(points))


def update_streak(progress: ProgressState, today: date) -> ProgressState:
    """Advance the streak for a study engagement on `today`.

    Studying the day after the last study date extends the streak, studying
    again on the same day changes nothing, and any longer gap restarts it at 1.
    """
    today_str = today.isoformat()
    yesterday_str = (today - timedelta(days=1)).isoformat()

    if progress.last_study_date == today_str:
        return progress
    if progress.last_study_date == yesterday_str:
        streak = progress.streak + 1
    else:
        streak = 1
    return replace(
        progress,
        streak=streak,
        longest_streak=max(progress.longest_streak, streak),
        last_study_date=today_str,
    )


def add_study_time(progress: ProgressState, minutes: int) -> ProgressState:
    if minutes < 0:
        raise ValueError("study time cannot be negative")
    return replace(progress, total_study_time_minutes=progress.total_study_time_minutes + minutes)
