from datetime import datetime

import pytest

from core.errors import InvalidCategory
from core.models import Category, ImageHandle
from core.services.category_registry import CategoryRegistry


@pytest.fixture
def registry():
    return CategoryRegistry()


@pytest.mark.parametrize(
    "request_, expected",
    [
        ("screenshots", Category.screenshots()),
        (" Recents ", Category.recents()),
        ("random", Category.random()),
        ("2023", Category.for_year(2023)),
        ("2023-05", Category.for_month(2023, 5)),
        ((2022,), Category.for_year(2022)),
        ((2022, 12), Category.for_month(2022, 12)),
        (Category.for_month(2020, 1), Category.for_month(2020, 1)),
    ],
)
def test_normalize_accepts_valid_requests(registry, request_, expected):
    assert registry.normalize(request_) == expected


@pytest.mark.parametrize(
    "request_",
    [
        "2023-13",
        "2023-00",
        (2023, 0),
        (0,),
        (-5, 3),
        (2023, 5, 1),
        "favourites",
        ("2023",),
        3.5,
    ],
)
def test_normalize_rejects_invalid_requests(registry, request_):
    with pytest.raises(InvalidCategory):
        registry.normalize(request_)


def test_invalid_category_is_value_error(registry):
    with pytest.raises(ValueError):
        registry.normalize("2023-99")


def test_available_years_distinct_descending(registry):
    images = [
        ImageHandle("a", datetime(2021, 1, 1)),
        ImageHandle("b", datetime(2023, 1, 1)),
        ImageHandle("c", datetime(2021, 6, 1)),
        ImageHandle("d", None),
    ]
    assert registry.available_years(images) == [2023, 2021]
    assert registry.available_years([]) == []


def test_fixed_categories_and_months(registry):
    assert registry.fixed_categories() == [
        Category.screenshots(),
        Category.recents(),
        Category.random(),
    ]
    months = registry.months_for(2023)
    assert len(months) == 12
    assert months[0] == Category.for_month(2023, 1)
    assert months[-1] == Category.for_month(2023, 12)


def test_months_for_rejects_non_positive_year(registry):
    with pytest.raises(InvalidCategory):
        registry.months_for(0)
