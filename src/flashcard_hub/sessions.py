"""Persisting completed practice sessions."""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from flashcard_hub.models import Result, SessionSummary
from flashcard_hub.remote import RemoteError, RemoteStore
from flashcard_hub.store import FlashcardStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRecorder:
    def __init__(self, store: FlashcardStore, remote: RemoteStore,
                 user_id: Callable[[], Optional[str]],
                 clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.remote = remote
        self._user_id = user_id
        self._clock = clock

    def save_study_session(self, total_cards: int, correct_answers: int,
                           incorrect_answers: int, duration_minutes: int) -> Result:
        """Store a session summary and fold its duration into the user's stats.

        The stats record is only updated when it already exists; it is never
        created here.
        """
        if duration_minutes < 0:
            raise ValueError("duration_minutes cannot be negative")
        self.store.add_study_time(duration_minutes)

        user_id = self._user_id()
        if not user_id:
            return Result.skipped("No signed-in user")

        now = self._clock()
        summary = SessionSummary.from_tally(
            total_cards, correct_answers, incorrect_answers, duration_minutes,
            session_date=now.isoformat(),
        )
        try:
            self.remote.insert_study_session(user_id, summary.to_record())
            stats = self.remote.fetch_user_stats(user_id)
            if stats:
                self.remote.update_user_stats(user_id, {
                    "total_study_time_minutes": (stats.get("total_study_time_minutes") or 0) + duration_minutes,
                    "last_study_date": now.isoformat(),
                })
            else:
                logger.info("No stats record for user %s, skipping aggregate update", user_id)
        except RemoteError as exc:
            logger.error("Error saving study session: %s", exc)
            return Result.remote_error(str(exc), summary)
        return Result.success(summary)

    def save_current_session(self, duration_minutes: int) -> Result:
        tally = self.store.session
        return self.save_study_session(tally.total, tally.correct, tally.incorrect, duration_minutes)
