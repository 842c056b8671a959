"""Category validation and enumeration.

The registry is the boundary where free-form category requests (menu keys,
tuples, already-built `Category` values) are turned into validated
`Category` instances before any session state is touched.
"""

from __future__ import annotations

from collections.abc import Iterable
import re

from core.errors import InvalidCategory
from core.models import FIXED_KINDS, Category, ImageHandle

_YEAR_RX = re.compile(r"^(\d{1,4})$")
_MONTH_RX = re.compile(r"^(\d{1,4})-(\d{1,2})$")

CategoryRequest = Category | str | tuple[int, ...]


class CategoryRegistry:
    """Validates and enumerates triage categories."""

    def normalize(self, request: CategoryRequest) -> Category:
        """Return a validated `Category` for `request`.

        Args:
            request: A `Category`, a key string (`recents`, `2023`,
                `2023-05`) or a `(year,)` / `(year, month)` tuple.

        Raises:
            InvalidCategory: If the tag is unknown, the year is not positive
                or the month is outside 1..12.
        """
        if isinstance(request, Category):
            return request
        if isinstance(request, tuple):
            return self._from_tuple(request)
        if isinstance(request, str):
            return self._from_key(request)
        raise InvalidCategory(f"Unsupported category request: {request!r}")

    def fixed_categories(self) -> list[Category]:
        """Return the parameterless categories in menu order."""
        return [Category(kind) for kind in FIXED_KINDS]

    def months_for(self, year: int) -> list[Category]:
        """Return the twelve month categories of `year`."""
        return [Category.for_month(year, month) for month in range(1, 13)]

    def available_years(self, images: Iterable[ImageHandle]) -> list[int]:
        """Return distinct creation years present in `images`, newest first."""
        years = {img.created_at.year for img in images if img.created_at is not None}
        return sorted(years, reverse=True)

    def _from_key(self, key: str) -> Category:
        text = key.strip().lower()
        for kind in FIXED_KINDS:
            if text == kind.value:
                return Category(kind)
        m = _MONTH_RX.match(text)
        if m:
            return self._from_tuple((int(m.group(1)), int(m.group(2))))
        m = _YEAR_RX.match(text)
        if m:
            return self._from_tuple((int(m.group(1)),))
        raise InvalidCategory(f"Unknown category: {key!r}")

    def _from_tuple(self, values: tuple[int, ...]) -> Category:
        if len(values) == 1:
            return Category.for_year(values[0])
        if len(values) == 2:
            return Category.for_month(values[0], values[1])
        raise InvalidCategory(f"Expected (year,) or (year, month), got {values!r}")

