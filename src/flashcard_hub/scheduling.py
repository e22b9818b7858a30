"""Fixed-interval review scheduling."""
from datetime import datetime, timedelta

CORRECT_INTERVAL = timedelta(days=5)
INCORRECT_INTERVAL = timedelta(days=1)
CORRECT_POINTS = 30
INCORRECT_POINTS = -10


def grade_update(correct: bool, correct_count: int, incorrect_count: int, now: datetime) -> dict:
    """Calculate the card fields changed by one grading event.

    Args:
        correct: Whether the learner recalled the answer
        correct_count: Current number of correct gradings
        incorrect_count: Current number of incorrect gradings
        now: Instant of the grading

    Returns:
        Dict with updated counters, last_reviewed, next_review and the
        points delta to award.
    """
    if correct:
        return {
            "correct_count": correct_count + 1,
            "incorrect_count": incorrect_count,
            "last_reviewed": now,
            "next_review": now + CORRECT_INTERVAL,
            "points": CORRECT_POINTS,
        }
    return {
        "correct_count": correct_count,
        "incorrect_count": incorrect_count + 1,
        "last_reviewed": now,
        "next_review": now + INCORRECT_INTERVAL,
        "points": INCORRECT_POINTS,
    }


def is_due(next_review: datetime | None, now: datetime) -> bool:
    return next_review is None or next_review <= now
