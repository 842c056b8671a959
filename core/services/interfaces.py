"""Core service interfaces and shared data structures.

This module defines the collaborator protocols the triage core talks to
(image source, renderer, deletion backend, feedback) and the simple
dataclasses exchanged with the infrastructure and UI layers.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from core.models import Category, ImageHandle


@dataclass
class DeleteResult:
    """Outcome of a batch delete.

    Attributes:
        success_paths: Identifiers successfully deleted.
        failed: Tuples of (identifier, reason) for failures.
        log_path: Optional path to a detailed audit log file.
    """

    success_paths: list[str]
    failed: list[tuple[str, str]]
    log_path: str | None = None


class ImageSource(Protocol):
    """Supplies the ordered image list of a category."""

    def fetch(self, category: Category) -> Sequence[ImageHandle]:
        """Return images of `category`, newest first."""
        ...

    def all_images(self) -> Sequence[ImageHandle]:
        """Return the full, uncapped image collection."""
        ...


class Renderer(Protocol):
    """Turns an image handle into pixels; failures yield a placeholder."""

    def render(self, handle: ImageHandle, target_side: int) -> Any:
        """Return an image bounded by `target_side`."""
        ...


class DeletionBackend(Protocol):
    """Permanently removes a batch of images."""

    def delete_permanently(self, handles: Sequence[ImageHandle]) -> DeleteResult:
        """Delete all `handles` or raise `core.errors.DeletionError`."""
        ...


class Feedback(Protocol):
    """Fire-and-forget cue (haptic, sound, flash) on decide and undo."""

    def notify(self, event: str) -> None:
        """Signal `event` (`keep`, `delete` or `undo`)."""
        ...


class NullFeedback:
    """Feedback collaborator that does nothing."""

    def notify(self, event: str) -> None:
        """Ignore `event`."""
