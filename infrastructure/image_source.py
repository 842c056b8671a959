"""Folder-backed image source.

Scans a directory tree for image files and serves category image lists
sorted newest first. Creation dates come from EXIF when present and fall
back to filesystem timestamps.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import os
from pathlib import Path
import random as _random

from loguru import logger

from core.models import Category, CategoryKind, ImageHandle
from infrastructure.settings import DEFAULTS, JsonSettings
from infrastructure.utils import (
    datetime_from_exif,
    get_filesystem_creation_datetime,
    has_camera_exif,
    read_exif,
)

_CAPPED_KINDS = {CategoryKind.SCREENSHOTS, CategoryKind.RECENTS, CategoryKind.RANDOM}


def _sort_newest_first(images: Sequence[ImageHandle]) -> list[ImageHandle]:
    dated = [img for img in images if img.created_at is not None]
    undated = [img for img in images if img.created_at is None]
    dated.sort(key=lambda img: (img.created_at, img.identifier), reverse=True)
    undated.sort(key=lambda img: img.identifier)
    return dated + undated


class FolderImageSource:
    """Image source reading a local folder recursively."""

    def __init__(
        self,
        root: str | Path,
        fetch_limit: int = 100,
        extensions: Iterable[str] | None = None,
        screenshot_patterns: Iterable[str] | None = None,
        rng: _random.Random | None = None,
    ) -> None:
        self._root = Path(root)
        self._limit = max(1, int(fetch_limit))
        self._extensions = {
            e.lower() for e in (extensions or DEFAULTS["library"]["extensions"])
        }
        self._patterns = [
            p.lower() for p in (screenshot_patterns or DEFAULTS["library"]["screenshot_patterns"])
        ]
        self._rng = rng or _random.Random()
        self._index: list[ImageHandle] | None = None

    @classmethod
    def from_settings(cls, settings: JsonSettings, root: str | None = None) -> FolderImageSource:
        return cls(
            root=root or settings.get("library.root") or Path.home() / "Pictures",
            fetch_limit=settings.get_int("library.fetch_limit", 100),
            extensions=settings.get("library.extensions"),
            screenshot_patterns=settings.get("library.screenshot_patterns"),
        )

    @property
    def root(self) -> Path:
        return self._root

    def refresh(self) -> None:
        """Drop the cached index so the next call rescans the folder."""
        self._index = None

    def all_images(self) -> Sequence[ImageHandle]:
        """Return every image under the root, newest first."""
        if self._index is None:
            self._index = _sort_newest_first(self._scan())
            logger.info("Indexed {} images under {}", len(self._index), self._root)
        return list(self._index)

    def fetch(self, category: Category) -> Sequence[ImageHandle]:
        """Return images of `category`, newest first.

        Screenshots, Recents and Random are capped at the fetch limit;
        year and month categories are not.
        """
        images = self.all_images()
        if category.kind is CategoryKind.SCREENSHOTS:
            selected = [img for img in images if img.is_screenshot]
        elif category.kind is CategoryKind.RANDOM:
            pool = list(images)
            sample = self._rng.sample(pool, min(self._limit, len(pool)))
            selected = _sort_newest_first(sample)
        elif category.kind in (CategoryKind.YEAR, CategoryKind.MONTH):
            selected = [img for img in images if category.matches_date(img.created_at)]
        else:
            selected = list(images)
        if category.kind in _CAPPED_KINDS:
            selected = selected[: self._limit]
        logger.debug("Fetched {} images for {}", len(selected), category.key)
        return selected

    def _scan(self) -> list[ImageHandle]:
        if not self._root.is_dir():
            logger.warning("Library root is not a directory: {}", self._root)
            return []
        handles: list[ImageHandle] = []
        for dirpath, _dirnames, filenames in os.walk(self._root):
            for name in filenames:
                if Path(name).suffix.lower() not in self._extensions:
                    continue
                handles.append(self._build_handle(os.path.join(dirpath, name)))
        return handles

    def _build_handle(self, path: str) -> ImageHandle:
        exif = read_exif(path)
        created = datetime_from_exif(exif)
        if created is None:
            created = get_filesystem_creation_datetime(path)
        return ImageHandle(
            identifier=os.path.normpath(path),
            created_at=created,
            is_screenshot=self._looks_like_screenshot(path, exif),
        )

    def _looks_like_screenshot(self, path: str, exif: dict) -> bool:
        name = Path(path).name.lower()
        if any(p in name for p in self._patterns):
            return True
        return Path(path).suffix.lower() == ".png" and not has_camera_exif(exif)
