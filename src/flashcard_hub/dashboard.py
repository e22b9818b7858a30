"""Progress dashboard statistics."""
from datetime import datetime
from typing import Optional

from flashcard_hub.models import Flashcard, UserStats
from flashcard_hub.store import FlashcardStore

MASTERY_CORRECT = 3


def is_mastered(card: Flashcard) -> bool:
    return card.correct_count >= MASTERY_CORRECT and card.correct_count > card.incorrect_count


def get_accuracy_label(accuracy: float) -> str:
    if accuracy >= 80:
        return "EXCELLENT"
    elif accuracy >= 60:
        return "GOOD"
    elif accuracy >= 40:
        return "NEEDS WORK"
    return "KEEP PRACTICING"


def get_accuracy_color(accuracy: float) -> str:
    if accuracy >= 80:
        return "green"
    elif accuracy >= 60:
        return "yellow"
    elif accuracy >= 40:
        return "dark_orange"
    return "red"


def local_stats(store: FlashcardStore, now: Optional[datetime] = None) -> dict:
    cards = store.cards
    correct = sum(c.correct_count for c in cards)
    reviews = correct + sum(c.incorrect_count for c in cards)
    return {
        "total_cards": len(cards),
        "cards_mastered": sum(1 for c in cards if is_mastered(c)),
        "starred": len(store.starred_cards()),
        "due": len(store.due_cards(now)),
        "reviews": reviews,
        "accuracy": round(correct / reviews * 100, 1) if reviews else 0.0,
    }


def build_user_stats(store: FlashcardStore, user_id: str) -> UserStats:
    stats = local_stats(store)
    progress = store.progress
    return UserStats(
        user_id=user_id,
        total_cards=stats["total_cards"],
        cards_mastered=stats["cards_mastered"],
        current_streak=progress.streak,
        longest_streak=progress.longest_streak,
        total_study_time_minutes=progress.total_study_time_minutes,
        points=progress.points,
        level=progress.level,
        last_study_date=progress.last_study_date or None,
    )


def session_chart_rows(sessions: list[dict]) -> list[dict]:
    """Rows for recent sessions given newest first; labels count down to Session 1."""
    count = len(sessions)
    return [
        {
            "session": f"Session {count - i}",
            "accuracy": round(s.get("accuracy_percentage") or 0),
            "duration": s.get("duration_minutes") or 0,
        }
        for i, s in enumerate(sessions)
    ]


def format_study_time(minutes: int) -> str:
    return f"{round(minutes / 60)}h ({minutes} minutes total)"
