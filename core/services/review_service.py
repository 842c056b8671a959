"""Review of staged deletions: restore single images or flush them all.

A flush runs in two steps. `begin_flush` marks the category pending and
snapshots its staged set under the session store lock, so it must run on the
thread that also drives the engine. `flush` then hands that snapshot to the
external backend and may block, so it can run on a worker thread. While a
flush is pending every conflicting mutation is rejected with
`DeletionInProgress`.
"""

from __future__ import annotations

from loguru import logger

from core.errors import DeletionError, DeletionInProgress
from core.models import Category, CategorySession, ImageHandle
from core.services.interfaces import DeletionBackend
from core.services.session_store import SessionStore


class ReviewManager:
    """Operates on the staged deletions of one category at a time."""

    def __init__(self, store: SessionStore, backend: DeletionBackend) -> None:
        self._store = store
        self._backend = backend

    def staged(self, category: Category) -> list[ImageHandle]:
        session = self._store.get(category)
        return session.staged if session is not None else []

    def is_pending(self, category: Category) -> bool:
        session = self._store.get(category)
        return bool(session and session.flush_pending)

    def restore(self, category: Category, image: ImageHandle) -> bool:
        """Take `image` out of the staged set without touching counters or cursor.

        Returns True if the image was staged. Unknown images are ignored.
        Restoring the last staged image of an exhausted category completes it.

        Raises:
            DeletionInProgress: If the category is being flushed.
        """
        with self._store.lock:
            session = self._store.get(category)
            if session is None:
                return False
            if session.flush_pending:
                raise DeletionInProgress(f"Deletion of {category.key} is in progress")
            restored = session.unstage(image)
            if restored and session.is_exhausted and not session.staged_deletions:
                session.completed = True
        if restored:
            logger.info("Restored {} in {}", image.identifier, category.key)
        return restored

    def begin_flush(self, category: Category) -> list[ImageHandle]:
        """Mark `category` as flushing and return the batch to delete.

        Returns an empty list, without marking anything, when nothing is staged.

        Raises:
            DeletionInProgress: If a flush of this category is already running.
        """
        with self._store.lock:
            session = self._store.get(category)
            if session is None or not session.staged_deletions:
                return []
            if session.flush_pending:
                raise DeletionInProgress(f"Deletion of {category.key} is already running")
            session.flush_pending = True
            return session.staged

    def flush(self, category: Category, batch: list[ImageHandle]) -> int:
        """Send `batch`, taken by `begin_flush`, to the backend.

        Returns the number of images removed; 0 for an empty batch, in which
        case the backend is not called.

        Raises:
            DeletionError: If the backend reports any failure. The staged set
                is left unchanged so the user can retry or restore.
        """
        if not batch:
            return 0
        session = self._store.get(category)
        if session is None or not session.flush_pending:
            raise DeletionError(f"No flush of {category.key} was started")
        logger.info("Deleting {} staged images of {}", len(batch), category.key)
        deleted: list[ImageHandle] | None = None
        try:
            result = self._backend.delete_permanently(batch)
            if result.failed:
                raise DeletionError(
                    f"{len(result.failed)} of {len(batch)} images could not be deleted",
                    result.failed,
                )
            deleted = batch
        except DeletionError as ex:
            logger.error("Deletion of {} failed: {}", category.key, ex.detail)
            raise
        finally:
            self._finish(session, deleted)
        logger.info("Deleted {} images of {}, category completed", len(batch), category.key)
        return len(batch)

    def confirm_permanent_deletion(self, category: Category) -> int:
        """Flush every staged image of `category` as one batch, blocking.

        Raises:
            DeletionError: If the backend reports any failure.
            DeletionInProgress: If a flush of this category is already running.
        """
        return self.flush(category, self.begin_flush(category))

    def _finish(self, session: CategorySession, deleted: list[ImageHandle] | None) -> None:
        with self._store.lock:
            session.flush_pending = False
            if deleted is None:
                return
            for image in deleted:
                session.unstage(image)
            session.flushed.extend(deleted)
            session.completed = True
