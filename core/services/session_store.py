"""In-memory store of per-category triage sessions."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
import threading

from loguru import logger

from core.models import Category, CategorySession, ImageHandle


class SessionStore:
    """Holds one `CategorySession` per category for the process lifetime.

    Sessions are created lazily on first visit; the image list is fetched
    only once per category so that progress stays aligned with the snapshot.

    Attributes:
        lock: Guards session mutations that must not interleave with a flush
            of staged deletions. Held by the engine and the review manager.
    """

    def __init__(self) -> None:
        self._sessions: dict[Category, CategorySession] = {}
        self.lock = threading.Lock()

    def get_or_create(
        self, category: Category, fetch: Callable[[], Sequence[ImageHandle]]
    ) -> CategorySession:
        """Return the session for `category`, fetching images only if new."""
        session = self._sessions.get(category)
        if session is not None:
            return session
        images = tuple(fetch())
        session = CategorySession(category=category, ordered_images=images)
        self._sessions[category] = session
        logger.info("Session created for {} with {} images", category.key, len(images))
        return session

    def get(self, category: Category) -> CategorySession | None:
        return self._sessions.get(category)

    def has(self, category: Category) -> bool:
        return category in self._sessions

    def save_cursor(self, category: Category, cursor: int) -> None:
        """Overwrite the stored cursor of `category`, clamped to the list bounds."""
        session = self._sessions.get(category)
        if session is None:
            logger.warning("save_cursor ignored, no session for {}", category.key)
            return
        session.cursor = max(0, min(int(cursor), session.total))

    def is_completed(self, category: Category) -> bool:
        session = self._sessions.get(category)
        return bool(session and session.completed)

    def completed_categories(self) -> list[Category]:
        return [c for c, s in self._sessions.items() if s.completed]

    def __contains__(self, category: object) -> bool:
        return category in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[CategorySession]:
        return iter(list(self._sessions.values()))
