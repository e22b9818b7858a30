"""Reconciliation of the local card repository with the remote store.

On every identity change the adapter runs one pass:

    IDLE -> PULLING -> PUSHING -> SETTLED

Pulling replaces the local cards with the remote ones when the remote has
any. Pushing uploads the local cards, one request each, only when the remote
is still empty after the settling delay. Phases run in program order, so the
push always observes the finished pull; the delay is kept only to let other
devices' writes land and gives no exactly-once guarantee. There is no
diffing and no conflict resolution when both sides hold cards.
"""
import logging
import time
from enum import Enum
from typing import Callable, Optional

from flashcard_hub.models import Result, SyncReport
from flashcard_hub.remote import RemoteError, RemoteStore, card_to_record, record_to_draft
from flashcard_hub.store import FlashcardStore

logger = logging.getLogger(__name__)


class SyncState(Enum):
    IDLE = "idle"
    PULLING = "pulling"
    PUSHING = "pushing"
    SETTLED = "settled"


class SyncAdapter:
    def __init__(
        self,
        store: FlashcardStore,
        remote: RemoteStore,
        settle_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        notify: Optional[Callable[[str], None]] = None,
    ):
        self.store = store
        self.remote = remote
        self.settle_seconds = settle_seconds
        self._sleep = sleep
        self._notify = notify or logger.info
        self.state = SyncState.IDLE
        self.user_id: Optional[str] = None
        self.last_report: Optional[SyncReport] = None

    def on_identity_change(self, user) -> Result:
        """Accept a user object (with an ``id``), a bare user id, or None."""
        user_id = getattr(user, "id", user)
        if user_id is None:
            self.state = SyncState.IDLE
            self.user_id = None
            return Result.skipped("No signed-in user")
        if user_id == self.user_id and self.state is SyncState.SETTLED:
            return Result.skipped("Already reconciled for this user")
        self.user_id = user_id
        return self.reconcile()

    def reconcile(self) -> Result:
        report = SyncReport()
        self.last_report = report
        try:
            result = self._pull(report)
            if result.ok:
                result = self._push(report)
        finally:
            self.state = SyncState.SETTLED
        return result

    def _pull(self, report: SyncReport) -> Result:
        self.state = SyncState.PULLING
        logger.info("Loading cards from remote for user %s", self.user_id)
        try:
            records = self.remote.fetch_cards(self.user_id)
        except RemoteError as exc:
            logger.error("Error loading cards: %s", exc)
            return Result.remote_error(str(exc), report)

        logger.info("Loaded %d cards from remote", len(records))
        if not records:
            return Result.success(report)
        drafts = []
        for record in records:
            try:
                drafts.append(record_to_draft(record))
            except (KeyError, TypeError, ValueError) as exc:
                ref = record.get("id") or record.get("question")
                logger.warning("Skipping unreadable remote card %r: %s", ref, exc)
                report.failed.append(ref)
        if not drafts:
            # Local cards are kept when nothing remote could be read
            return Result.remote_error("No readable cards on remote", report)
        self.store.clear_cards()
        for draft in drafts:
            self.store.add_card(draft)
        report.pulled = len(drafts)
        return Result.success(report)

    def _push(self, report: SyncReport) -> Result:
        self.state = SyncState.PUSHING
        cards = self.store.cards
        if not cards:
            return Result.success(report)

        if self.settle_seconds:
            self._sleep(self.settle_seconds)
        try:
            if self.remote.has_cards(self.user_id):
                return Result.success(report)
        except RemoteError as exc:
            logger.error("Error checking existing cards: %s", exc)
            return Result.remote_error(str(exc), report)

        logger.info("Syncing %d local cards to remote", len(cards))
        for card in cards:
            try:
                self.remote.insert_card(self.user_id, card_to_record(card))
                report.pushed += 1
            except RemoteError as exc:
                logger.error("Error inserting card %s: %s", card.id, exc)
                report.failed.append(card.id)

        if report.failed:
            self._notify(f"Synced {report.pushed} of {len(cards)} cards to your account")
            return Result.remote_error(f"{len(report.failed)} cards failed to sync", report)
        self._notify("Local cards synced to your account!")
        return Result.success(report)
