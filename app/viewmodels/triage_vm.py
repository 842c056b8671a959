"""ViewModel exposing the triage engine and review manager to views."""

from __future__ import annotations

from dataclasses import dataclass

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
from core.services.category_registry import CategoryRequest
from core.services.interfaces import ImageSource
from core.services.review_service import ReviewManager
from core.services.triage_engine import TriageEngine


@dataclass(frozen=True)
class MenuEntry:
    """One selectable category in a menu."""

    category: Category
    label: str
    completed: bool


class TriageVM:
    """Main triage view-model.

    Serializes user input: decisions and undo are ignored while the active
    category is being flushed, and decisions on an exhausted list only
    request the review instead of raising.
    """

    def __init__(self, engine: TriageEngine, review: ReviewManager, source: ImageSource) -> None:
        self._engine = engine
        self._review = review
        self._source = source
        self.review_requested = False

    @property
    def engine(self) -> TriageEngine:
        return self._engine

    @property
    def category(self) -> Category | None:
        return self._engine.active_category

    @property
    def session(self) -> CategorySession | None:
        return self._engine.active_session

    @property
    def busy(self) -> bool:
        category = self.category
        return category is not None and self._review.is_pending(category)

    def menu_entries(self) -> list[MenuEntry]:
        """Fixed categories followed by the years present in the library."""
        registry = self._engine.registry
        categories = registry.fixed_categories()
        categories += [
            Category.for_year(y) for y in registry.available_years(self._source.all_images())
        ]
        return [self._entry(c) for c in categories]

    def month_entries(self, year: int) -> list[MenuEntry]:
        return [self._entry(c) for c in self._engine.registry.months_for(year)]

    def open(self, request: CategoryRequest) -> CategorySession:
        session = self._engine.select_category(request)
        self.review_requested = session.is_exhausted and bool(session.staged_deletions)
        return session

    def back(self) -> None:
        self._engine.leave_category()
        self.review_requested = False

    def current_image(self) -> ImageHandle | None:
        return self._engine.current_image()

    def progress_text(self) -> str:
        session = self.session
        return session.progress_text if session is not None else ""

    def counters(self) -> tuple[int, int]:
        """Return (kept, deleted) for the active category."""
        session = self.session
        if session is None:
            return 0, 0
        return session.kept_count, session.deleted_count

    def can_undo(self) -> bool:
        return self._engine.history.can_undo and not self.busy

    def swipe(self, decision: Decision) -> DecisionOutcome | None:
        """Apply `decision` to the active category.

        Returns None when the input was ignored.
        """
        category = self.category
        if category is None or self.busy:
            return None
        try:
            outcome = self._engine.decide(category, decision)
        except OutOfRangeDecision as ex:
            logger.info("Decision ignored: {}", ex)
            self.review_requested = True
            return None
        if outcome.exhausted:
            self.review_requested = True
        return outcome

    def undo(self) -> HistoryEntry | None:
        try:
            entry = self._engine.undo()
        except DeletionInProgress as ex:
            logger.info("Undo ignored: {}", ex)
            return None
        if entry is not None and entry.category != self.category:
            self._engine.switch_category(entry.category)
        self.review_requested = False
        return entry

    def staged(self) -> list[ImageHandle]:
        category = self.category
        return self._review.staged(category) if category is not None else []

    def restore(self, image: ImageHandle) -> bool:
        category = self.category
        if category is None:
            return False
        return self._review.restore(category, image)

    def begin_deletion(self, category: Category) -> list[ImageHandle]:
        """Lock `category` for flushing and return the batch; call on the UI thread."""
        batch = self._review.begin_flush(category)
        if category == self.category:
            self.review_requested = False
        return batch

    def finish_deletion(self, category: Category, batch: list[ImageHandle]) -> int:
        """Flush `batch` of `category`; may block on the backend."""
        return self._review.flush(category, batch)

    def confirm_deletion(self, category: Category) -> int:
        return self.finish_deletion(category, self.begin_deletion(category))

    def _entry(self, category: Category) -> MenuEntry:
        return MenuEntry(category, category.label, self._engine.store.is_completed(category))
