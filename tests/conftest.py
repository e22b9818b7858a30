from datetime import date, datetime, timezone

import pytest

from flashcard_hub.remote import InMemoryRemote
from flashcard_hub.store import FlashcardStore

NOW = datetime(2024, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_flashcards.db")
    return db_path


class FakeClock:
    def __init__(self, now=NOW, today=date(2024, 3, 14)):
        self.now = now
        self.today = today

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return FlashcardStore(clock=clock, today=lambda: clock.today)


@pytest.fixture
def remote():
    return InMemoryRemote()
