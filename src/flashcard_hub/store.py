"""Card repository: cards, practice cursor, session tally and progress."""
import logging
import uuid
from collections import defaultdict
from dataclasses import fields, replace
from datetime import date, datetime, timezone
from typing import Callable, Optional

from flashcard_hub import progress as progress_rules
from flashcard_hub.db import STORAGE_NAME, init_db, load_snapshot, save_snapshot
from flashcard_hub.models import (
    CardDraft, Flashcard, ProgressState, Result, Stage, StudySession, check_difficulty,
)
from flashcard_hub.scheduling import grade_update, is_due

logger = logging.getLogger(__name__)

_CARD_FIELDS = {f.name for f in fields(Flashcard)} - {"id"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_updates(updates: dict) -> None:
    for name in ("question", "answer"):
        if name in updates and not (updates[name] or "").strip():
            raise ValueError(f"{name} must not be empty")
    if "difficulty" in updates:
        check_difficulty(updates["difficulty"])
    for name in ("correct_count", "incorrect_count"):
        if name in updates and updates[name] < 0:
            raise ValueError("counters must not be negative")


class FlashcardStore:
    """In-process owner of the flashcard collection and the learner's progress.

    When constructed with a database path every mutation is written to the
    local snapshot, and the previous snapshot is rehydrated on construction.
    Lookups by a missing identifier return a NOT_FOUND result instead of
    raising.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
        today: Callable[[], date] = date.today,
        storage_name: str = STORAGE_NAME,
    ):
        self.db_path = db_path
        self.storage_name = storage_name
        self._clock = clock
        self._today = today
        self._cards: list[Flashcard] = []
        self.current_card_index = 0
        self.session = StudySession()
        self.progress = ProgressState()
        self.stage = Stage.SETUP
        self.next_review_time: Optional[datetime] = None
        if db_path:
            init_db(db_path)
            self._rehydrate()

    # Persistence ---------------------------------------------------------

    def snapshot(self) -> dict:
        return {
            "stage": int(self.stage),
            "cards": [card.to_dict() for card in self._cards],
            "current_card_index": self.current_card_index,
            "progress": self.progress.to_dict(),
            "study_session": {
                "correct": self.session.correct,
                "incorrect": self.session.incorrect,
                "total": self.session.total,
            },
            "next_review_time": self.next_review_time.isoformat() if self.next_review_time else None,
        }

    def _persist(self) -> None:
        if self.db_path:
            save_snapshot(self.db_path, self.snapshot(), self.storage_name)

    def _rehydrate(self) -> None:
        payload = load_snapshot(self.db_path, self.storage_name)
        if not payload:
            return
        self._cards = [Flashcard.from_dict(c) for c in payload.get("cards", [])]
        self.current_card_index = payload.get("current_card_index", 0)
        self.progress = ProgressState.from_dict(payload.get("progress", {}))
        self.session = StudySession(**payload.get("study_session", {}))
        try:
            self.stage = Stage(payload.get("stage", Stage.SETUP))
        except ValueError:
            self.stage = Stage.SETUP
        review_time = payload.get("next_review_time")
        self.next_review_time = datetime.fromisoformat(review_time) if review_time else None
        logger.info("Flashcard store rehydrated with %d cards", len(self._cards))

    # Queries -------------------------------------------------------------

    @property
    def cards(self) -> list[Flashcard]:
        return list(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def get_card(self, card_id: str) -> Optional[Flashcard]:
        for card in self._cards:
            if card.id == card_id:
                return card
        return None

    @property
    def current_card(self) -> Optional[Flashcard]:
        if not self._cards:
            return None
        return self._cards[self.current_card_index % len(self._cards)]

    def due_cards(self, now: Optional[datetime] = None) -> list[Flashcard]:
        now = now or self._clock()
        return [c for c in self._cards if is_due(c.next_review, now)]

    def starred_cards(self) -> list[Flashcard]:
        return [c for c in self._cards if c.is_starred]

    def cards_by_subject(self) -> dict[str, list[Flashcard]]:
        groups = defaultdict(list)
        for card in self._cards:
            groups[card.subject or "General"].append(card)
        return dict(groups)

    def cards_by_week(self) -> dict[str, list[Flashcard]]:
        groups = defaultdict(list)
        for card in self._cards:
            groups[card.week or "Unassigned"].append(card)
        return dict(groups)

    # Card mutations ------------------------------------------------------

    def add_card(self, draft: CardDraft) -> Result:
        card = Flashcard(
            id=str(uuid.uuid4()),
            question=draft.question,
            answer=draft.answer,
            subject=draft.subject,
            week=draft.week,
            difficulty=draft.difficulty,
            last_reviewed=draft.last_reviewed,
            next_review=draft.next_review,
            correct_count=draft.correct_count,
            incorrect_count=draft.incorrect_count,
            is_starred=draft.is_starred,
        )
        self._cards.append(card)
        logger.debug("Adding card: %s", card.question)
        self._persist()
        return Result.success(card)

    def update_card(self, card_id: str, **updates) -> Result:
        unknown = set(updates) - _CARD_FIELDS
        if unknown:
            raise TypeError(f"Cannot update card fields: {', '.join(sorted(unknown))}")
        _check_updates(updates)
        for i, card in enumerate(self._cards):
            if card.id == card_id:
                self._cards[i] = replace(card, **updates)
                self._persist()
                return Result.success(self._cards[i])
        return Result.not_found(card_id)

    def delete_card(self, card_id: str) -> Result:
        remaining = [c for c in self._cards if c.id != card_id]
        if len(remaining) == len(self._cards):
            return Result.not_found(card_id)
        self._cards = remaining
        self._persist()
        return Result.success()

    def clear_cards(self) -> Result:
        logger.debug("Clearing all cards")
        self._cards = []
        self._persist()
        return Result.success()

    def toggle_star(self, card_id: str) -> Result:
        card = self.get_card(card_id)
        if card is None:
            return Result.not_found(card_id)
        return self.update_card(card_id, is_starred=not card.is_starred)

    # Grading -------------------------------------------------------------

    def _grade(self, card_id: str, correct: bool) -> Result:
        for i, card in enumerate(self._cards):
            if card.id == card_id:
                break
        else:
            return Result.not_found(card_id)
        updated = grade_update(correct, card.correct_count, card.incorrect_count, self._clock())
        points = updated.pop("points")
        self._cards[i] = replace(card, **updated)
        self.progress = progress_rules.add_points(self.progress, points)
        if correct:
            self.session = replace(self.session, correct=self.session.correct + 1,
                                   total=self.session.total + 1)
        else:
            self.session = replace(self.session, incorrect=self.session.incorrect + 1,
                                   total=self.session.total + 1)
        self._persist()
        return Result.success(self._cards[i])

    def mark_card_correct(self, card_id: str) -> Result:
        return self._grade(card_id, correct=True)

    def mark_card_incorrect(self, card_id: str) -> Result:
        return self._grade(card_id, correct=False)

    # Practice cursor and session ----------------------------------------

    def next_card(self) -> Result:
        self.current_card_index = (self.current_card_index + 1) % max(len(self._cards), 1)
        self._persist()
        return Result.success(self.current_card)

    def reset_session(self) -> Result:
        self.current_card_index = 0
        self.session = StudySession()
        self._persist()
        return Result.success()

    # Progress ------------------------------------------------------------

    def add_points(self, delta: int) -> Result:
        self.progress = progress_rules.add_points(self.progress, delta)
        self._persist()
        return Result.success(self.progress)

    def update_streak(self) -> Result:
        self.progress = progress_rules.update_streak(self.progress, self._today())
        self._persist()
        return Result.success(self.progress)

    def add_study_time(self, minutes: int) -> Result:
        self.progress = progress_rules.add_study_time(self.progress, minutes)
        self._persist()
        return Result.success(self.progress)

    # Stage ---------------------------------------------------------------

    def set_stage(self, stage: int) -> Result:
        logger.debug("Setting stage to: %s", stage)
        self.stage = Stage(stage)
        self._persist()
        return Result.success(self.stage)

    def set_next_review_time(self, when: Optional[datetime]) -> Result:
        self.next_review_time = when
        self._persist()
        return Result.success(when)


def select_stage(store: FlashcardStore) -> Stage:
    """Stage to present: the stored stage, or setup while there is nothing to study."""
    if not len(store):
        return Stage.SETUP
    return store.stage
