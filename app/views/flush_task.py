from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal
from loguru import logger

from core.errors import DeletionError
from core.models import Category, ImageHandle


class FlushSignals(QObject):
    """Signals emitted back to the GUI thread when a flush ends."""

    finished = Signal(object, int)  # category, deleted count
    failed = Signal(object, str)  # category, detail


FlushFn = Callable[[Category, list[ImageHandle]], int]


class _FlushTask(QRunnable):
    """QRunnable running `flush(category, batch)` off the GUI thread."""

    def __init__(
        self,
        *,
        category: Category,
        batch: list[ImageHandle],
        flush: FlushFn,
        signals: FlushSignals,
    ) -> None:
        super().__init__()
        self._category = category
        self._batch = batch
        self._flush = flush
        self._signals = signals

    def run(self) -> None:  # type: ignore[override]
        try:
            count = self._flush(self._category, self._batch)
        except DeletionError as ex:
            self._signals.failed.emit(self._category, str(ex))
            return
        except Exception as ex:  # pragma: no cover - GUI background task
            logger.exception("Flush task crashed: {}", ex)
            self._signals.failed.emit(self._category, f"Unexpected error: {ex}")
            return
        self._signals.finished.emit(self._category, count)


class FlushTaskRunner:
    """Dispatches permanent deletion batches to the global thread pool.

    `begin` runs on the calling (GUI) thread so the category is locked before
    control returns to the event loop; only `flush` runs on the pool.
    """

    def __init__(self, begin: Callable[[Category], list[ImageHandle]], flush: FlushFn) -> None:
        self._begin = begin
        self._flush = flush
        self._pool = QThreadPool.globalInstance()
        self.signals = FlushSignals()

    def start(self, category: Category) -> bool:
        """Lock `category` and queue its flush. False when nothing was staged.

        Raises:
            DeletionInProgress: If the category is already being flushed.
        """
        batch = self._begin(category)
        if not batch:
            return False
        task = _FlushTask(category=category, batch=batch, flush=self._flush, signals=self.signals)
        self._pool.start(task)
        return True
