"""Shared fixtures: in-memory collaborators for the triage core."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import pytest

from core.errors import DeletionError
from core.models import Category, CategoryKind, ImageHandle
from core.services.interfaces import DeleteResult
from core.services.review_service import ReviewManager
from core.services.triage_engine import TriageEngine


def make_image(name: str, created: datetime | None = None, screenshot: bool = False) -> ImageHandle:
    return ImageHandle(identifier=name, created_at=created, is_screenshot=screenshot)


class FakeImageSource:
    """Serves fixed lists per category and counts fetch calls."""

    def __init__(self, images: Sequence[ImageHandle]) -> None:
        self.images = list(images)
        self.fetch_calls: list[Category] = []

    def all_images(self) -> Sequence[ImageHandle]:
        return list(self.images)

    def fetch(self, category: Category) -> Sequence[ImageHandle]:
        self.fetch_calls.append(category)
        if category.kind is CategoryKind.SCREENSHOTS:
            return [i for i in self.images if i.is_screenshot]
        if category.kind in (CategoryKind.YEAR, CategoryKind.MONTH):
            return [i for i in self.images if category.matches_date(i.created_at)]
        return list(self.images)


class RecordingBackend:
    """Deletion backend recording batches; can be told to fail."""

    def __init__(self) -> None:
        self.batches: list[list[ImageHandle]] = []
        self.fail_with: str | None = None
        self.partial_failure: list[tuple[str, str]] = []

    def delete_permanently(self, handles: Sequence[ImageHandle]) -> DeleteResult:
        self.batches.append(list(handles))
        if self.fail_with is not None:
            raise DeletionError(self.fail_with, [(h.identifier, self.fail_with) for h in handles])
        failed = list(self.partial_failure)
        failed_ids = {p for p, _ in failed}
        success = [h.identifier for h in handles if h.identifier not in failed_ids]
        return DeleteResult(success_paths=success, failed=failed)


class RecordingFeedback:
    def __init__(self) -> None:
        self.events: list[str] = []

    def notify(self, event: str) -> None:
        self.events.append(event)


@pytest.fixture
def abc_images():
    return [
        make_image("A", datetime(2023, 5, 3)),
        make_image("B", datetime(2023, 5, 2)),
        make_image("C", datetime(2022, 1, 1)),
    ]


@pytest.fixture
def source(abc_images):
    return FakeImageSource(abc_images)


@pytest.fixture
def feedback():
    return RecordingFeedback()


@pytest.fixture
def engine(source, feedback):
    return TriageEngine(source, feedback=feedback)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def review(engine, backend):
    return ReviewManager(engine.store, backend)
