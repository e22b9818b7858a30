import pytest
from unittest.mock import patch

from rich.console import Console

from flashcard_hub.app import (
    SessionExitRequested, build_services, cmd_add, cmd_dashboard, run_practice_session, session_prompt,
)
from flashcard_hub.config import Settings
from flashcard_hub.models import CardDraft, Stage


@pytest.fixture
def services(tmp_db):
    settings = Settings(_env_file=None, db_path=tmp_db, supabase_url="", supabase_anon_key="",
                        sync_settle_seconds=0)
    return build_services(settings)


def test_session_prompt_raises_on_q():
    with patch("flashcard_hub.app.Prompt.ask", return_value="q"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_raises_on_menu():
    with patch("flashcard_hub.app.Prompt.ask", return_value="menu"):
        with pytest.raises(SessionExitRequested):
            session_prompt("test prompt")


def test_session_prompt_returns_normal_input():
    with patch("flashcard_hub.app.Prompt.ask", return_value="hello"):
        assert session_prompt("test prompt") == "hello"


def test_cmd_add_creates_card(services):
    answers = iter(["What is 2+2?", "4", "Math", "Week 1", "easy"])
    with patch("flashcard_hub.app.Prompt.ask", side_effect=lambda *a, **k: next(answers)):
        cmd_add(services)
    card = services.store.cards[0]
    assert card.question == "What is 2+2?"
    assert card.week == "Week 1"
    assert card.difficulty == "easy"
    assert services.store.stage is Stage.ORGANIZE


def test_practice_session_grades_and_updates_streak(services):
    store = services.store
    for n in range(2):
        store.add_card(CardDraft(question=f"Q{n}?", answer=f"A{n}"))
    answers = iter(["", "y", "", "n"])
    with patch("flashcard_hub.app.Prompt.ask", side_effect=lambda *a, **k: next(answers)):
        correct, total = run_practice_session(services, store.cards)
    assert (correct, total) == (1, 2)
    assert store.progress.points == 20
    assert store.progress.streak == 1
    assert store.stage is Stage.REVIEW_TIMER
    assert store.next_review_time is not None


def test_practice_session_exit_keeps_graded_cards(services):
    store = services.store
    for n in range(2):
        store.add_card(CardDraft(question=f"Q{n}?", answer=f"A{n}"))
    answers = iter(["", "y", "q"])
    with patch("flashcard_hub.app.Prompt.ask", side_effect=lambda *a, **k: next(answers)):
        correct, total = run_practice_session(services, store.cards)
    assert (correct, total) == (1, 1)
    assert store.cards[0].correct_count == 1
    assert store.cards[1].correct_count == 0


def test_login_triggers_reconciliation(services):
    store = services.store
    store.add_card(CardDraft(question="Local?", answer="yes"))
    services.auth.sign_up("a@b.c", "secret1", "Ada")
    services.auth.sign_in("a@b.c", "secret1")
    user_id = services.auth.current_user.id
    assert [r["question"] for r in services.remote.fetch_cards(user_id)] == ["Local?"]


def test_practice_session_saved_remotely_when_signed_in(services):
    store = services.store
    services.auth.sign_up("a@b.c", "secret1", "Ada")
    services.auth.sign_in("a@b.c", "secret1")
    store.add_card(CardDraft(question="Q?", answer="A"))
    answers = iter(["", "y"])
    with patch("flashcard_hub.app.Prompt.ask", side_effect=lambda *a, **k: next(answers)):
        run_practice_session(services, store.cards)
    saved = services.remote.study_sessions[0]
    assert saved["accuracy_percentage"] == 100
    assert saved["duration_minutes"] == 1


def _recording_console():
    return Console(record=True, width=200)


def test_dashboard_shows_account_stats_from_remote(services):
    services.auth.sign_up("a@b.c", "secret1", "Ada")
    services.auth.sign_in("a@b.c", "secret1")
    user_id = services.auth.current_user.id
    services.remote.user_stats[user_id] = {
        "user_id": user_id, "points": 1240, "level": 3, "current_streak": 4,
        "longest_streak": 9, "total_study_time_minutes": 120,
    }
    with patch("flashcard_hub.app.console", _recording_console()) as out:
        cmd_dashboard(services)
    text = out.export_text()
    assert "Account: level 3  |  1240 points" in text
    assert "best 9" in text
    assert "no stats yet" not in text


def test_dashboard_without_remote_stats_uses_local_progress(services):
    services.auth.sign_up("a@b.c", "secret1", "Ada")
    services.auth.sign_in("a@b.c", "secret1")
    card = services.store.add_card(CardDraft(question="Q?", answer="A")).value
    services.store.mark_card_correct(card.id)
    with patch("flashcard_hub.app.console", _recording_console()) as out:
        cmd_dashboard(services)
    text = out.export_text()
    assert "Account: level 1  |  30 points  |  0/1 mastered" in text
    assert "no stats yet" in text


def test_dashboard_signed_out_skips_remote(services):
    with patch("flashcard_hub.app.console", _recording_console()) as out:
        cmd_dashboard(services)
    assert "Account:" not in out.export_text()
    assert services.remote.requests == []
