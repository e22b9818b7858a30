"""Tests for data model classes."""
from datetime import datetime, timezone

import pytest

from flashcard_hub.models import (
    CardDraft, Flashcard, ProgressState, Result, SessionSummary, Status, UserStats,
)


def test_card_draft_defaults():
    d = CardDraft(question="Q?", answer="A")
    assert d.subject is None
    assert d.week is None
    assert d.difficulty is None
    assert d.correct_count == 0
    assert d.incorrect_count == 0
    assert d.is_starred is False


def test_card_draft_rejects_empty_question():
    with pytest.raises(ValueError):
        CardDraft(question="  ", answer="A")


def test_card_draft_rejects_unknown_difficulty():
    with pytest.raises(ValueError):
        CardDraft(question="Q?", answer="A", difficulty="impossible")


def test_card_draft_rejects_negative_counters():
    with pytest.raises(ValueError):
        CardDraft(question="Q?", answer="A", correct_count=-1)


def test_flashcard_dict_keeps_timestamps():
    reviewed = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
    card = Flashcard(id="abc", question="Q?", answer="A", last_reviewed=reviewed, correct_count=2)
    data = card.to_dict()
    assert data["last_reviewed"] == reviewed.isoformat()
    assert data["next_review"] is None
    restored = Flashcard.from_dict(data)
    assert restored == card


def test_session_summary_accuracy():
    s = SessionSummary.from_tally(10, 7, 3, 12, "2024-03-14")
    assert s.accuracy_percentage == 70


def test_session_summary_zero_total():
    s = SessionSummary.from_tally(0, 0, 0, 5, "2024-03-14")
    assert s.accuracy_percentage == 0


def test_progress_state_defaults():
    p = ProgressState()
    assert p.points == 0
    assert p.level == 1
    assert p.streak == 0
    assert p.last_study_date == ""


def test_user_stats_from_record_ignores_nulls_and_extras():
    stats = UserStats.from_record({
        "user_id": "u1", "points": 40, "level": None, "id": "row-1", "created_at": "x",
    })
    assert stats.points == 40
    assert stats.level == 1


def test_result_helpers():
    assert Result.success(1).ok
    missing = Result.not_found("nope")
    assert missing.status is Status.NOT_FOUND
    assert "nope" in missing.error
    assert not Result.remote_error("boom").ok
