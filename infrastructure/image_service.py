"""Image decoding and caching for previews.

Decodes with Pillow (HEIC/HEIF through pillow-heif), applies EXIF
orientation, scales to the requested side and converts to `QImage`. Decode
failures produce a grey placeholder instead of raising.
"""

from __future__ import annotations

from collections import OrderedDict
import hashlib
import os

from PIL import Image, ImageOps, UnidentifiedImageError
from PySide6.QtGui import QColor, QImage
from loguru import logger
from pillow_heif import register_heif_opener

from core.models import ImageHandle
from infrastructure.settings import JsonSettings

register_heif_opener()

PLACEHOLDER_SIDE = 64


def _compute_cache_key(path: str, size_key: int) -> str:
    """Compute a stable cache key from path, mtime, size, and requested side."""
    try:
        st = os.stat(path)
        sig = f"{path}|{int(st.st_mtime_ns)}|{int(st.st_size)}|{int(size_key)}"
    except OSError:
        sig = f"{path}|0|0|{int(size_key)}"
    return hashlib.sha1(sig.encode("utf-8", errors="ignore")).hexdigest()


class _LRUCache:
    def __init__(self, capacity: int) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, QImage] = OrderedDict()

    def get(self, key: str) -> QImage | None:
        """Return cached QImage for key, moving it to the MRU position."""
        image = self._data.get(key)
        if image is None:
            return None
        self._data.move_to_end(key)
        return image

    def put(self, key: str, image: QImage) -> None:
        """Insert or update `key` with `image`, evicting LRU when over capacity."""
        self._data[key] = image
        self._data.move_to_end(key)
        while len(self._data) > self._cap:
            self._data.popitem(last=False)

    def __len__(self) -> int:
        return len(self._data)


def make_placeholder(side: int = PLACEHOLDER_SIDE) -> QImage:
    """Return a flat grey image used when decoding fails."""
    img = QImage(side, side, QImage.Format.Format_ARGB32)
    img.fill(QColor(220, 220, 220))
    return img


class ImageService:
    """Renderer with an in-memory LRU cache."""

    def __init__(self, settings: JsonSettings | None = None, cache_size: int = 64) -> None:
        if settings is not None:
            cache_size = settings.get_int("preview.cache_size", cache_size)
        self._cache = _LRUCache(cache_size)

    def render(self, handle: ImageHandle, target_side: int) -> QImage:
        """Return `handle` scaled to fit `target_side`, or a placeholder."""
        path = handle.identifier
        key = _compute_cache_key(path, target_side)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        img = self._load_via_pillow(path, target_side)
        if img is None:
            return make_placeholder()
        self._cache.put(key, img)
        return img

    def _load_via_pillow(self, path: str, requested_side: int) -> QImage | None:
        """Load image with Pillow (HEIF supported through pillow-heif)."""
        try:
            with Image.open(path) as im:
                im = ImageOps.exif_transpose(im)
                if requested_side and requested_side > 0:
                    im.thumbnail((requested_side, requested_side), Image.Resampling.LANCZOS)
                return self._pil_to_qimage(im)
        except (OSError, UnidentifiedImageError, ValueError) as ex:
            logger.debug("Pillow load failed for {}: {}", path, ex)
            return None

    def _pil_to_qimage(self, pil_img: Image.Image) -> QImage | None:
        """Convert a Pillow image to `QImage` and detach from the source buffer."""
        if pil_img.mode != "RGBA":
            pil_img = pil_img.convert("RGBA")
        data = pil_img.tobytes("raw", "RGBA")
        qimg = QImage(
            data, pil_img.width, pil_img.height, pil_img.width * 4, QImage.Format.Format_RGBA8888
        )
        if qimg.isNull():
            return None
        return qimg.copy()
