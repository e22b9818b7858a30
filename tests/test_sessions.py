# tests/test_sessions.py
import pytest

from flashcard_hub.models import CardDraft, Status
from flashcard_hub.remote import InMemoryRemote, RemoteError
from flashcard_hub.sessions import SessionRecorder


class BrokenRemote(InMemoryRemote):
    def insert_study_session(self, user_id, record):
        raise RemoteError("timeout")


def _recorder(store, remote, clock, user_id="u1"):
    return SessionRecorder(store, remote, user_id=lambda: user_id, clock=clock)


def test_save_study_session_records_accuracy(store, remote, clock):
    recorder = _recorder(store, remote, clock)
    result = recorder.save_study_session(total_cards=10, correct_answers=7,
                                         incorrect_answers=3, duration_minutes=12)
    assert result.ok
    saved = remote.study_sessions[0]
    assert saved["accuracy_percentage"] == 70
    assert saved["total_cards"] == 10
    assert saved["duration_minutes"] == 12
    assert saved["user_id"] == "u1"
    assert saved["session_date"] == clock.now.isoformat()


def test_zero_cards_gives_zero_accuracy(store, remote, clock):
    recorder = _recorder(store, remote, clock)
    recorder.save_study_session(0, 0, 0, 3)
    assert remote.study_sessions[0]["accuracy_percentage"] == 0


def test_existing_stats_are_updated(store, remote, clock):
    remote.user_stats["u1"] = {"user_id": "u1", "total_study_time_minutes": 30,
                               "last_study_date": None}
    recorder = _recorder(store, remote, clock)
    recorder.save_study_session(10, 7, 3, 12)
    stats = remote.user_stats["u1"]
    assert stats["total_study_time_minutes"] == 42
    assert stats["last_study_date"] == clock.now.isoformat()


def test_missing_stats_are_not_created(store, remote, clock):
    recorder = _recorder(store, remote, clock)
    result = recorder.save_study_session(10, 7, 3, 12)
    assert result.ok
    assert remote.user_stats == {}
    assert ("PATCH", "user_stats") not in remote.requests


def test_signed_out_session_is_skipped_but_counted_locally(store, remote, clock):
    recorder = _recorder(store, remote, clock, user_id=None)
    result = recorder.save_study_session(4, 2, 2, 6)
    assert result.status is Status.SKIPPED
    assert remote.requests == []
    assert store.progress.total_study_time_minutes == 6


def test_remote_failure_is_reported(store, clock):
    recorder = _recorder(store, BrokenRemote(), clock)
    result = recorder.save_study_session(4, 2, 2, 6)
    assert result.status is Status.REMOTE_ERROR
    assert result.value.accuracy_percentage == 50


def test_negative_duration_rejected(store, remote, clock):
    with pytest.raises(ValueError):
        _recorder(store, remote, clock).save_study_session(1, 1, 0, -5)


def test_save_current_session_uses_store_tally(store, remote, clock):
    a = store.add_card(CardDraft(question="A?", answer="a")).value
    b = store.add_card(CardDraft(question="B?", answer="b")).value
    store.mark_card_correct(a.id)
    store.mark_card_incorrect(b.id)
    _recorder(store, remote, clock).save_current_session(duration_minutes=5)
    saved = remote.study_sessions[0]
    assert saved["total_cards"] == 2
    assert saved["correct_answers"] == 1
    assert saved["incorrect_answers"] == 1
    assert saved["accuracy_percentage"] == 50
