"""Keep/delete triage state machine.

The engine owns the active category, records every decision on the global
swipe history and reverses them exactly on undo. It never talks to the
deletion backend; exhausted categories are handed over to
`core.services.review_service.ReviewManager`.
"""

from __future__ import annotations

from loguru import logger

from core.errors import DeletionInProgress, OutOfRangeDecision
from core.models import (
    Category,
    CategorySession,
    Decision,
    DecisionOutcome,
    HistoryEntry,
    ImageHandle,
)
from core.services.category_registry import CategoryRegistry, CategoryRequest
from core.services.interfaces import Feedback, ImageSource, NullFeedback
from core.services.session_store import SessionStore
from core.services.swipe_history import SwipeHistory


class TriageEngine:
    """Coordinates decisions, undo and category switching.

    Calls are expected to be serialized by the caller. Decisions and undo take
    the session store lock and refuse to touch a category whose staged
    deletions are being flushed.
    """

    def __init__(
        self,
        source: ImageSource,
        store: SessionStore | None = None,
        history: SwipeHistory | None = None,
        registry: CategoryRegistry | None = None,
        feedback: Feedback | None = None,
    ) -> None:
        self._source = source
        self.store = store or SessionStore()
        self.history = history or SwipeHistory()
        self.registry = registry or CategoryRegistry()
        self._feedback = feedback or NullFeedback()
        self._active: Category | None = None

    @property
    def active_category(self) -> Category | None:
        return self._active

    @property
    def active_session(self) -> CategorySession | None:
        if self._active is None:
            return None
        return self.store.get(self._active)

    def current_image(self) -> ImageHandle | None:
        session = self.active_session
        return session.current_image if session is not None else None

    def select_category(self, request: CategoryRequest) -> CategorySession:
        """Normalize `request` and make it the active category."""
        category = self.registry.normalize(request)
        return self.switch_category(category)

    def switch_category(self, to: Category) -> CategorySession:
        """Save progress of the active category and resume or start `to`."""
        self._save_active_cursor()
        session = self.store.get_or_create(to, lambda: self._source.fetch(to))
        self._active = to
        logger.info(
            "Active category {} at {} ({} kept, {} deleted)",
            to.key,
            session.progress_text,
            session.kept_count,
            session.deleted_count,
        )
        return session

    def leave_category(self) -> None:
        """Save progress and return to category selection."""
        self._save_active_cursor()
        self._active = None

    def keep(self) -> DecisionOutcome:
        return self.decide(self._require_active(), Decision.KEEP)

    def delete(self) -> DecisionOutcome:
        return self.decide(self._require_active(), Decision.DELETE)

    def decide(self, category: Category, decision: Decision) -> DecisionOutcome:
        """Commit `decision` for the image under the cursor of `category`.

        Raises:
            OutOfRangeDecision: If the category has no undecided image left.
            DeletionInProgress: If the category is being flushed.
        """
        with self.store.lock:
            session = self.store.get(category)
            if session is None:
                raise OutOfRangeDecision(f"No session for category {category.key}")
            if session.flush_pending:
                raise DeletionInProgress(f"Deletion of {category.key} is in progress")
            if session.is_exhausted:
                raise OutOfRangeDecision(
                    f"Category {category.key} is exhausted at {session.cursor}/{session.total}"
                )

            cursor = session.cursor
            image = session.ordered_images[cursor]
            staged = True
            if decision is Decision.KEEP:
                session.kept_count += 1
            else:
                session.deleted_count += 1
                staged = session.stage(image)

            entry = HistoryEntry(
                category=category, image=image, decision=decision, cursor_before=cursor
            )
            self.history.push(entry)
            session.cursor = cursor + 1
            exhausted = session.is_exhausted
            if exhausted and not session.staged_deletions:
                session.completed = True
        if not staged:
            logger.warning("Image {} was already staged in {}", image.identifier, category.key)
        logger.debug(
            "{} {} [{}] -> {}",
            decision.value,
            image.identifier,
            category.key,
            session.progress_text,
        )
        self._notify(decision.value)
        return DecisionOutcome(entry=entry, exhausted=exhausted)

    def undo(self) -> HistoryEntry | None:
        """Reverse the most recent decision, whatever its category.

        Returns the reversed entry, or None when there is nothing to undo.

        Raises:
            DeletionInProgress: If the entry's category is being flushed; the
                entry stays on the stack.
        """
        with self.store.lock:
            entry = self.history.peek()
            if entry is None:
                return None
            session = self.store.get(entry.category)
            if session is not None and session.flush_pending:
                raise DeletionInProgress(f"Deletion of {entry.category.key} is in progress")
            self.history.pop()
            if session is None:
                logger.warning("Undo for unknown category {}", entry.category.key)
                return entry

            session.cursor = entry.cursor_before
            if entry.decision is Decision.DELETE:
                session.unstage(entry.image)
                session.deleted_count = max(0, session.deleted_count - 1)
            else:
                session.kept_count = max(0, session.kept_count - 1)
            session.completed = False
            flushed = entry.image in session.flushed
        if flushed:
            logger.warning(
                "Undo of {} which was already deleted permanently", entry.image.identifier
            )
        logger.info(
            "Undo {} {} [{}]", entry.decision.value, entry.image.identifier, entry.category.key
        )
        self._notify("undo")
        return entry

    def _require_active(self) -> Category:
        if self._active is None:
            raise OutOfRangeDecision("No active category")
        return self._active

    def _save_active_cursor(self) -> None:
        session = self.active_session
        if session is not None:
            self.store.save_cursor(session.category, session.cursor)

    def _notify(self, event: str) -> None:
        try:
            self._feedback.notify(event)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.debug("Feedback for {} failed: {}", event, ex)
