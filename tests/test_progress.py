# tests/test_progress.py
from datetime import date

import pytest

from flashcard_hub.models import ProgressState
from flashcard_hub.progress import add_points, add_study_time, level_for_points, update_streak

TODAY = date(2024, 3, 14)


@pytest.mark.parametrize("delta", [-1000, -10, -1, 0, 1, 30, 499, 500, 1499, 10_000])
def test_add_points_never_negative_and_level_matches(delta):
    for start in (0, 20, 480, 1000):
        p = add_points(ProgressState(points=start, level=level_for_points(start)), delta)
        assert p.points >= 0
        assert p.level == p.points // 500 + 1


def test_add_points_clamps_at_zero():
    p = add_points(ProgressState(), -10)
    assert p.points == 0
    assert p.level == 1


def test_level_thresholds():
    assert level_for_points(0) == 1
    assert level_for_points(499) == 1
    assert level_for_points(500) == 2
    assert level_for_points(999) == 2
    assert level_for_points(1000) == 3


def test_level_drops_with_points():
    p = add_points(ProgressState(points=505, level=2), -10)
    assert p.points == 495
    assert p.level == 1


def test_first_study_starts_streak():
    p = update_streak(ProgressState(), TODAY)
    assert p.streak == 1
    assert p.longest_streak == 1
    assert p.last_study_date == "2024-03-14"


def test_consecutive_day_extends_streak():
    p = ProgressState(streak=4, longest_streak=4, last_study_date="2024-03-13")
    p = update_streak(p, TODAY)
    assert p.streak == 5
    assert p.longest_streak == 5
    assert p.last_study_date == "2024-03-14"


def test_same_day_is_idempotent():
    p = update_streak(ProgressState(streak=2, longest_streak=3, last_study_date="2024-03-13"), TODAY)
    again = update_streak(p, TODAY)
    assert again == p
    assert again.streak == 3


def test_gap_resets_streak_but_keeps_longest():
    p = ProgressState(streak=6, longest_streak=9, last_study_date="2024-03-10")
    p = update_streak(p, TODAY)
    assert p.streak == 1
    assert p.longest_streak == 9


def test_streak_across_month_boundary():
    p = ProgressState(streak=1, longest_streak=1, last_study_date="2024-02-29")
    p = update_streak(p, date(2024, 3, 1))
    assert p.streak == 2


def test_add_study_time():
    p = add_study_time(ProgressState(total_study_time_minutes=10), 15)
    assert p.total_study_time_minutes == 25
    with pytest.raises(ValueError):
        add_study_time(p, -1)
