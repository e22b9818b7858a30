"""Remote record store: flashcards, study sessions and aggregate user stats."""
import itertools
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

import requests

from flashcard_hub.models import CardDraft, Flashcard

logger = logging.getLogger(__name__)

_FRACTION = re.compile(r"\.(\d+)(?=[+-]\d\d:\d\d$|$)")


class RemoteError(Exception):
    """Raised when the remote store cannot complete a request."""


def card_to_record(card: Flashcard) -> dict:
    """Snake-case remote representation of a local card (without user_id)."""
    return {
        "question": card.question,
        "answer": card.answer,
        "subject": card.subject,
        "week": card.week,
        "difficulty": card.difficulty,
        "correct_count": card.correct_count,
        "incorrect_count": card.incorrect_count,
        "is_starred": card.is_starred,
        "last_reviewed": card.last_reviewed.isoformat() if card.last_reviewed else None,
        "next_review": card.next_review.isoformat() if card.next_review else None,
    }


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    # PostgREST emits a trailing Z on some columns and trims trailing zeros
    # from fractional seconds, which fromisoformat rejects before 3.11
    value = value.replace("Z", "+00:00")
    value = _FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0")[:6], value)
    return datetime.fromisoformat(value)


def record_to_draft(record: dict) -> CardDraft:
    return CardDraft(
        question=record["question"],
        answer=record["answer"],
        subject=record.get("subject") or None,
        week=record.get("week") or None,
        difficulty=record.get("difficulty") or None,
        last_reviewed=_parse_timestamp(record.get("last_reviewed")),
        next_review=_parse_timestamp(record.get("next_review")),
        correct_count=record.get("correct_count") or 0,
        incorrect_count=record.get("incorrect_count") or 0,
        is_starred=bool(record.get("is_starred")),
    )


class RemoteStore(ABC):
    """Per-user record store the local repository is reconciled against."""

    @abstractmethod
    def fetch_cards(self, user_id: str) -> list[dict]:
        """Return all flashcard records for the user, newest first."""

    @abstractmethod
    def has_cards(self, user_id: str) -> bool:
        """Return True when the user owns at least one flashcard record."""

    @abstractmethod
    def insert_card(self, user_id: str, record: dict) -> None:
        """Persist one flashcard record."""

    @abstractmethod
    def insert_study_session(self, user_id: str, record: dict) -> None:
        """Persist one session summary."""

    @abstractmethod
    def fetch_study_sessions(self, user_id: str, limit: int = 7) -> list[dict]:
        """Return the most recent session summaries, newest first."""

    @abstractmethod
    def fetch_user_stats(self, user_id: str) -> Optional[dict]:
        """Return the aggregate stats record, or None if the user has none."""

    @abstractmethod
    def update_user_stats(self, user_id: str, fields: dict) -> None:
        """Update fields of an existing aggregate stats record."""


class InMemoryRemote(RemoteStore):
    """Process-local store keeping records in plain lists."""

    def __init__(self):
        self.flashcards: list[dict] = []
        self.study_sessions: list[dict] = []
        self.user_stats: dict[str, dict] = {}
        self.requests: list[tuple[str, str]] = []
        self._seq = itertools.count()

    def _log(self, method: str, table: str) -> None:
        self.requests.append((method, table))

    def fetch_cards(self, user_id):
        self._log("GET", "flashcards")
        rows = [r for r in self.flashcards if r["user_id"] == user_id]
        return [dict(r) for r in sorted(rows, key=lambda r: r["_seq"], reverse=True)]

    def has_cards(self, user_id):
        self._log("GET", "flashcards")
        return any(r["user_id"] == user_id for r in self.flashcards)

    def insert_card(self, user_id, record):
        self._log("POST", "flashcards")
        self.flashcards.append({
            **record,
            "user_id": user_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "_seq": next(self._seq),
        })

    def insert_study_session(self, user_id, record):
        self._log("POST", "study_sessions")
        self.study_sessions.append({**record, "user_id": user_id, "_seq": next(self._seq)})

    def fetch_study_sessions(self, user_id, limit=7):
        self._log("GET", "study_sessions")
        rows = [r for r in self.study_sessions if r["user_id"] == user_id]
        rows.sort(key=lambda r: (r["session_date"], r["_seq"]), reverse=True)
        return [dict(r) for r in rows[:limit]]

    def fetch_user_stats(self, user_id):
        self._log("GET", "user_stats")
        stats = self.user_stats.get(user_id)
        return dict(stats) if stats else None

    def update_user_stats(self, user_id, fields):
        self._log("PATCH", "user_stats")
        if user_id in self.user_stats:
            self.user_stats[user_id].update(fields)


class SupabaseRemote(RemoteStore):
    """RemoteStore backed by a Supabase project's PostgREST endpoint."""

    def __init__(self, url: str, anon_key: str, access_token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.rest_url = url.rstrip("/") + "/rest/v1"
        self.anon_key = anon_key
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def set_access_token(self, token: Optional[str]) -> None:
        self.access_token = token

    def _headers(self, prefer: Optional[str] = None) -> dict:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, table: str, params: Optional[dict] = None,
                 payload: Optional[dict] = None, prefer: Optional[str] = None):
        try:
            response = self.session.request(
                method, f"{self.rest_url}/{table}",
                params=params, json=payload,
                headers=self._headers(prefer), timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RemoteError(f"{method} {table} failed: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(f"{method} {table} returned invalid JSON") from exc

    def fetch_cards(self, user_id):
        return self._request("GET", "flashcards", params={
            "select": "*", "user_id": f"eq.{user_id}", "order": "created_at.desc",
        }) or []

    def has_cards(self, user_id):
        rows = self._request("GET", "flashcards", params={
            "select": "id", "user_id": f"eq.{user_id}", "limit": 1,
        })
        return bool(rows)

    def insert_card(self, user_id, record):
        self._request("POST", "flashcards", payload={**record, "user_id": user_id},
                      prefer="return=minimal")

    def insert_study_session(self, user_id, record):
        self._request("POST", "study_sessions", payload={**record, "user_id": user_id},
                      prefer="return=minimal")

    def fetch_study_sessions(self, user_id, limit=7):
        return self._request("GET", "study_sessions", params={
            "select": "*", "user_id": f"eq.{user_id}",
            "order": "session_date.desc", "limit": limit,
        }) or []

    def fetch_user_stats(self, user_id):
        rows = self._request("GET", "user_stats", params={
            "select": "*", "user_id": f"eq.{user_id}", "limit": 1,
        })
        return rows[0] if rows else None

    def update_user_stats(self, user_id, fields):
        self._request("PATCH", "user_stats", params={"user_id": f"eq.{user_id}"},
                      payload=fields, prefer="return=minimal")
