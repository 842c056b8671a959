"""Global undo stack of committed triage decisions."""

from __future__ import annotations

from core.models import Category, HistoryEntry


class SwipeHistory:
    """LIFO log of decisions across all categories.

    Only the most recent entry can be reversed, whichever category it
    belongs to.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def push(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def pop(self) -> HistoryEntry | None:
        """Remove and return the latest entry, or None when empty."""
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    @property
    def can_undo(self) -> bool:
        return bool(self._entries)

    def entries_for(self, category: Category) -> list[HistoryEntry]:
        """Return committed entries of `category`, oldest first."""
        return [e for e in self._entries if e.category == category]

    def __len__(self) -> int:
        return len(self._entries)
