"""AI flashcard generation through the hosted generation function."""
import logging
import mimetypes
from pathlib import Path
from typing import Optional

import requests

from flashcard_hub.models import DIFFICULTIES, GeneratedCard
from flashcard_hub.store import FlashcardStore

logger = logging.getLogger(__name__)

SAMPLE_CARDS = [
    GeneratedCard(
        question="What is the main concept discussed?",
        answer="The main concept relates to the uploaded content analysis.",
        subject="General",
    ),
    GeneratedCard(
        question="What are the key points to remember?",
        answer="Key points include the primary themes and supporting details.",
        subject="General",
    ),
    GeneratedCard(
        question="How does this relate to broader topics?",
        answer="This connects to wider subject areas through shared principles.",
        subject="General",
        difficulty="hard",
    ),
]


class GenerationError(Exception):
    """Raised when the generation service cannot be called."""


def normalize_card(raw, subject: str) -> GeneratedCard:
    raw = raw if isinstance(raw, dict) else {}
    difficulty = raw.get("difficulty")
    return GeneratedCard(
        question=str(raw.get("question") or "Generated question"),
        answer=str(raw.get("answer") or "Generated answer"),
        subject=str(raw.get("subject") or subject),
        difficulty=difficulty if difficulty in DIFFICULTIES else "medium",
    )


def parse_function_response(payload, subject: str) -> list[GeneratedCard]:
    if not isinstance(payload, dict) or not isinstance(payload.get("flashcards"), list):
        logger.warning("Unexpected generation response shape, using sample cards")
        return list(SAMPLE_CARDS)
    cards = [normalize_card(raw, subject) for raw in payload["flashcards"]]
    return cards or list(SAMPLE_CARDS)


class FlashcardGenerator:
    """Client for the `generate-flashcards` Supabase function."""

    def __init__(self, url: str, anon_key: str, function: str = "generate-flashcards",
                 session: Optional[requests.Session] = None, timeout: float = 60.0):
        self.function_url = f"{url.rstrip('/')}/functions/v1/{function}"
        self.anon_key = anon_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def request(self, subject: str, file_path: Optional[str] = None,
                video_url: Optional[str] = None) -> dict:
        if not file_path and not video_url:
            raise ValueError("Provide a file or a video URL")
        headers = {"apikey": self.anon_key, "Authorization": f"Bearer {self.anon_key}"}
        data = {"subject": subject or "General"}
        files = None
        if video_url:
            data["videoURL"] = video_url
        try:
            if file_path:
                path = Path(file_path)
                mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
                with path.open("rb") as fh:
                    files = {"file": (path.name, fh.read(), mime)}
            response = self.session.post(self.function_url, data=data, files=files,
                                         headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, OSError, ValueError) as exc:
            raise GenerationError(str(exc)) from exc

    def generate(self, subject: str, file_path: Optional[str] = None,
                 video_url: Optional[str] = None) -> list[GeneratedCard]:
        try:
            payload = self.request(subject, file_path=file_path, video_url=video_url)
        except GenerationError as exc:
            logger.error("Flashcard generation failed: %s", exc)
            return list(SAMPLE_CARDS)
        return parse_function_response(payload, subject or "General")


def add_generated_cards(store: FlashcardStore, cards: list[GeneratedCard], week: Optional[str] = None) -> int:
    for card in cards:
        draft = card.to_draft()
        draft.week = week
        store.add_card(draft)
    return len(cards)


def generate_cards_from_content(store: FlashcardStore) -> int:
    """Add the built-in sample deck to the store."""
    return add_generated_cards(store, SAMPLE_CARDS)
