"""Utilities for image metadata extraction (EXIF and filesystem).

Parsing is best-effort and never raises; callers should expect `None` when
data is not available.
"""

from __future__ import annotations

from datetime import datetime
import os
from typing import Any

from PIL import Image, UnidentifiedImageError
from loguru import logger

# EXIF tags: 36867 DateTimeOriginal (Exif IFD), 306 DateTime, 271 Make, 272 Model
_TAG_DATETIME_ORIGINAL = 36867
_TAG_DATETIME = 306
_TAG_MAKE = 271
_TAG_MODEL = 272
_EXIF_IFD = 0x8769


def parse_exif_datetime(value: Any) -> datetime | None:
    """Parse an EXIF timestamp such as `2023:05:14 10:21:00`."""
    if not value:
        return None
    text = str(value).strip().rstrip("\x00")
    try:
        if len(text) >= 19 and text[4] == ":" and text[7] == ":":
            return datetime.strptime(text[:19], "%Y:%m:%d %H:%M:%S")
        return datetime.fromisoformat(text.replace("/", "-"))
    except ValueError:
        return None


def get_filesystem_creation_datetime(path: str) -> datetime | None:
    """Best-effort file creation time.

    Uses `st_birthtime` where the platform provides it, otherwise the
    modification time.
    """
    try:
        st = os.stat(path)
        ts = getattr(st, "st_birthtime", None) or st.st_mtime
        return datetime.fromtimestamp(ts)
    except (OSError, ValueError) as ex:
        logger.debug("stat failed for {}: {}", path, ex)
        return None


def read_exif(path: str) -> dict[int, Any]:
    """Return merged base and Exif-IFD tags of `path`, empty on failure."""
    try:
        with Image.open(path) as im:
            exif = im.getexif()
            if not exif:
                return {}
            data: dict[int, Any] = dict(exif)
            try:
                data.update(exif.get_ifd(_EXIF_IFD))
            except (KeyError, ValueError, TypeError):
                pass
            return data
    except (OSError, UnidentifiedImageError, ValueError) as ex:
        logger.debug("EXIF read failed for {}: {}", path, ex)
        return {}


def datetime_from_exif(exif: dict[int, Any]) -> datetime | None:
    """Return DateTimeOriginal, or DateTime, from already-read EXIF tags."""
    return parse_exif_datetime(exif.get(_TAG_DATETIME_ORIGINAL) or exif.get(_TAG_DATETIME))


def has_camera_exif(exif: dict[int, Any]) -> bool:
    """Return True if `exif` names a camera make or model."""
    return bool(exif.get(_TAG_MAKE) or exif.get(_TAG_MODEL))
