"""Data classes for the flashcard domain model."""
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Optional

DIFFICULTIES = ("easy", "medium", "hard")


class Stage(IntEnum):
    SETUP = 1
    ORGANIZE = 2
    PRACTICE = 3
    REVIEW_TIMER = 4


class Status(Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    REMOTE_ERROR = "remote_error"
    SKIPPED = "skipped"


@dataclass
class Result:
    """Outcome of a store, sync or recorder operation."""
    status: Status
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(Status.SUCCESS, value)

    @classmethod
    def not_found(cls, card_id: str) -> "Result":
        return cls(Status.NOT_FOUND, error=f"No card with id {card_id}")

    @classmethod
    def remote_error(cls, error: str, value: Any = None) -> "Result":
        return cls(Status.REMOTE_ERROR, value, error)

    @classmethod
    def skipped(cls, reason: str) -> "Result":
        return cls(Status.SKIPPED, error=reason)


def check_difficulty(difficulty: Optional[str]) -> None:
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValueError(f"difficulty must be one of {DIFFICULTIES}, got {difficulty!r}")


@dataclass
class CardDraft:
    question: str
    answer: str
    subject: Optional[str] = None
    week: Optional[str] = None
    difficulty: Optional[str] = None
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None
    # Carried over when replaying remote records
    correct_count: int = 0
    incorrect_count: int = 0
    is_starred: bool = False

    def __post_init__(self):
        if not self.question or not self.question.strip():
            raise ValueError("question must not be empty")
        if not self.answer or not self.answer.strip():
            raise ValueError("answer must not be empty")
        check_difficulty(self.difficulty)
        if self.correct_count < 0 or self.incorrect_count < 0:
            raise ValueError("counters must not be negative")


@dataclass
class Flashcard:
    id: str
    question: str
    answer: str
    subject: Optional[str] = None
    week: Optional[str] = None
    difficulty: Optional[str] = None
    last_reviewed: Optional[datetime] = None
    next_review: Optional[datetime] = None
    correct_count: int = 0
    incorrect_count: int = 0
    is_starred: bool = False

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        for key in ("last_reviewed", "next_review"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, payload: dict) -> "Flashcard":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in payload.items() if k in known}
        for key in ("last_reviewed", "next_review"):
            if data.get(key):
                data[key] = datetime.fromisoformat(data[key])
        return cls(**data)


@dataclass
class StudySession:
    correct: int = 0
    incorrect: int = 0
    total: int = 0


@dataclass
class SessionSummary:
    total_cards: int
    correct_answers: int
    incorrect_answers: int
    accuracy_percentage: float
    duration_minutes: int
    session_date: str

    @classmethod
    def from_tally(cls, total_cards: int, correct_answers: int, incorrect_answers: int,
                   duration_minutes: int, session_date: str) -> "SessionSummary":
        accuracy = (correct_answers / total_cards) * 100 if total_cards > 0 else 0
        return cls(
            total_cards=total_cards,
            correct_answers=correct_answers,
            incorrect_answers=incorrect_answers,
            accuracy_percentage=accuracy,
            duration_minutes=duration_minutes,
            session_date=session_date,
        )

    def to_record(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ProgressState:
    points: int = 0
    level: int = 1
    streak: int = 0
    longest_streak: int = 0
    last_study_date: str = ""  # ISO date, "" when never studied
    total_study_time_minutes: int = 0

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, payload: dict) -> "ProgressState":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in payload.items() if k in known})


@dataclass
class UserStats:
    user_id: str
    total_cards: int = 0
    cards_mastered: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_study_time_minutes: int = 0
    points: int = 0
    level: int = 1
    last_study_date: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict) -> "UserStats":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in record.items() if k in known and v is not None}
        return cls(**data)

    def to_record(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class GeneratedCard:
    question: str
    answer: str
    subject: str
    difficulty: str = "medium"

    def to_draft(self) -> CardDraft:
        return CardDraft(
            question=self.question, answer=self.answer,
            subject=self.subject, difficulty=self.difficulty,
        )


@dataclass
class SyncReport:
    pulled: int = 0
    pushed: int = 0
    failed: list = field(default_factory=list)
