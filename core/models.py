"""Core domain models for triage categories, images and per-category sessions."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from core.errors import InvalidCategory


class CategoryKind(str, Enum):
    """Tag of a triage category."""

    SCREENSHOTS = "screenshots"
    RECENTS = "recents"
    RANDOM = "random"
    YEAR = "year"
    MONTH = "month"


FIXED_KINDS = (CategoryKind.SCREENSHOTS, CategoryKind.RECENTS, CategoryKind.RANDOM)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Category:
    """Immutable grouping of images to triage.

    Plain tags carry no parameters; `YEAR` carries `year`, `MONTH` carries
    `year` and `month`. Instances compare and hash structurally so they can
    key session maps. Use `core.services.category_registry.CategoryRegistry`
    to build instances from user input such as menu keys.

    Raises:
        InvalidCategory: On construction with an unknown tag, parameters the
            tag does not take, a non-positive year or a month outside 1..12.
    """

    kind: CategoryKind
    year: int | None = None
    month: int | None = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "kind", CategoryKind(self.kind))
        except ValueError:
            raise InvalidCategory(f"Unknown category tag: {self.kind!r}") from None
        if self.kind in FIXED_KINDS:
            if self.year is not None or self.month is not None:
                raise InvalidCategory(f"{self.kind.value} takes no parameters")
            return
        if not _is_int(self.year) or self.year <= 0:
            raise InvalidCategory(f"Year must be a positive integer, got {self.year!r}")
        if self.kind is CategoryKind.YEAR:
            if self.month is not None:
                raise InvalidCategory("Year category takes no month")
            return
        if not _is_int(self.month) or not 1 <= self.month <= 12:
            raise InvalidCategory(f"Month must be within 1..12, got {self.month!r}")

    @classmethod
    def screenshots(cls) -> Category:
        return cls(CategoryKind.SCREENSHOTS)

    @classmethod
    def recents(cls) -> Category:
        return cls(CategoryKind.RECENTS)

    @classmethod
    def random(cls) -> Category:
        return cls(CategoryKind.RANDOM)

    @classmethod
    def for_year(cls, year: int) -> Category:
        return cls(CategoryKind.YEAR, year=year)

    @classmethod
    def for_month(cls, year: int, month: int) -> Category:
        return cls(CategoryKind.MONTH, year=year, month=month)

    @property
    def key(self) -> str:
        """Stable string form, e.g. `recents`, `2023` or `2023-05`."""
        if self.kind is CategoryKind.YEAR:
            return f"{self.year:04d}"
        if self.kind is CategoryKind.MONTH:
            return f"{self.year:04d}-{self.month:02d}"
        return self.kind.value

    @property
    def label(self) -> str:
        """Human readable name for menus and titles."""
        if self.kind is CategoryKind.YEAR:
            return str(self.year)
        if self.kind is CategoryKind.MONTH:
            return f"{calendar.month_name[self.month]} {self.year}"
        return self.kind.value.capitalize()

    def matches_date(self, value: datetime | None) -> bool:
        """Return True if `value` falls into this year/month category."""
        if value is None:
            return False
        if self.kind is CategoryKind.YEAR:
            return value.year == self.year
        if self.kind is CategoryKind.MONTH:
            return value.year == self.year and value.month == self.month
        return True


@dataclass(frozen=True)
class ImageHandle:
    """Opaque reference to one image of the external collection."""

    identifier: str
    created_at: datetime | None = field(default=None, compare=False)
    is_screenshot: bool = field(default=False, compare=False)


class Decision(str, Enum):
    """Binary triage decision."""

    KEEP = "keep"
    DELETE = "delete"

    @property
    def direction(self) -> str:
        """Swipe direction that commits this decision."""
        return "right" if self is Decision.KEEP else "left"


@dataclass(frozen=True)
class HistoryEntry:
    """One committed decision, recorded so it can be reversed exactly."""

    category: Category
    image: ImageHandle
    decision: Decision
    cursor_before: int


@dataclass(frozen=True)
class DecisionOutcome:
    """Result of `TriageEngine.decide`.

    Attributes:
        entry: The history entry that was pushed.
        exhausted: True when the decision consumed the last image.
    """

    entry: HistoryEntry
    exhausted: bool


@dataclass
class CategorySession:
    """Mutable triage progress for a single category.

    Attributes:
        category: Category this session belongs to.
        ordered_images: Snapshot of the image list taken at session start.
        cursor: Index of the next undecided image.
        kept_count: Number of keep decisions still committed.
        deleted_count: Number of delete decisions still committed.
        staged_deletions: Ordered set of images awaiting permanent removal.
        completed: Whether the category has been fully processed.
        flushed: Images already removed through the deletion backend.
        flush_pending: Set while a permanent deletion batch is in flight.
    """

    category: Category
    ordered_images: tuple[ImageHandle, ...] = ()
    cursor: int = 0
    kept_count: int = 0
    deleted_count: int = 0
    # dict keys keep insertion order and reject duplicates
    staged_deletions: dict[ImageHandle, None] = field(default_factory=dict)
    completed: bool = False
    flushed: list[ImageHandle] = field(default_factory=list)
    flush_pending: bool = False

    @property
    def total(self) -> int:
        return len(self.ordered_images)

    @property
    def remaining(self) -> int:
        return self.total - self.cursor

    @property
    def decided(self) -> int:
        return self.kept_count + self.deleted_count

    @property
    def is_exhausted(self) -> bool:
        return self.cursor >= self.total

    @property
    def current_image(self) -> ImageHandle | None:
        if 0 <= self.cursor < self.total:
            return self.ordered_images[self.cursor]
        return None

    @property
    def staged(self) -> list[ImageHandle]:
        """Staged deletions in the order they were staged."""
        return list(self.staged_deletions)

    @property
    def progress_text(self) -> str:
        """Position counter such as `3 / 100`."""
        if not self.total:
            return "0 / 0"
        return f"{min(self.cursor + 1, self.total)} / {self.total}"

    def stage(self, image: ImageHandle) -> bool:
        """Stage `image` for deletion. Returns False if it was already staged."""
        if image in self.staged_deletions:
            return False
        self.staged_deletions[image] = None
        return True

    def unstage(self, image: ImageHandle) -> bool:
        """Remove `image` from the staged set. Returns False if it was absent."""
        if image not in self.staged_deletions:
            return False
        del self.staged_deletions[image]
        return True
