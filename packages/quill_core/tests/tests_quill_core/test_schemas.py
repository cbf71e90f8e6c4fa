import pytest
from pydantic import BaseModel, ValidationError
from quill_core import MAX_SQL_INTEGER, PaginatedResponse, PaginationParams


def test_default_construction():
    """Should default to the first page with no page size."""
    params = PaginationParams.model_validate({})

    assert params.page == 1
    assert params.items_per_page is None


def test_construction_from_query_strings():
    """Should coerce query string values."""
    params = PaginationParams.model_validate({"page": "3", "itemsPerPage": "10"})

    assert params.page == 3
    assert params.items_per_page == 10


def test_populate_by_field_name():
    """Should accept the snake_case field name."""
    params = PaginationParams(page=2, items_per_page=5)

    assert params.items_per_page == 5


def test_extra_fields_are_ignored():
    """Should ignore unknown parameters."""
    params = PaginationParams.model_validate({"page": 1, "title": "foo"})

    assert params.page == 1
    assert not hasattr(params, "title")


@pytest.mark.parametrize("page", [0, -1, "abc", 2**63])
def test_invalid_page_is_rejected(page):
    """Should reject pages that are not positive storable integers."""
    with pytest.raises(ValidationError):
        PaginationParams.model_validate({"page": page})


def test_largest_storable_page_is_accepted():
    """Should accept a page up to the 64-bit INTEGER bound."""
    assert PaginationParams(page=MAX_SQL_INTEGER).page == MAX_SQL_INTEGER


def test_negative_items_per_page_is_rejected():
    """Should reject a negative page size."""
    with pytest.raises(ValidationError):
        PaginationParams.model_validate({"itemsPerPage": -1})


def test_zero_items_per_page_is_raised_to_one():
    """Should raise a zero page size to one."""
    params = PaginationParams.model_validate({"itemsPerPage": 0})

    assert params.items_per_page == 1


def test_limit_clamped_to_maximum():
    """Should clamp the page size to the maximum."""
    params = PaginationParams.model_validate({"itemsPerPage": 100})

    assert params.get_limit(default=2, maximum=2) == 2


def test_limit_falls_back_to_default():
    """Should use the default page size when none is given."""
    params = PaginationParams()

    assert params.get_limit(default=7, maximum=50) == 7


def test_offset_depends_on_page():
    """Should compute the offset from the page number."""
    params = PaginationParams(page=4)

    assert params.get_offset(25) == 75


def test_resolve_returns_limit_and_offset():
    """Should return the clamped limit and its offset."""
    params = PaginationParams(page=3, itemsPerPage=100)

    assert params.resolve(default=2, maximum=2) == (2, 4)


class Item(BaseModel):
    id: int


def test_paginated_response_serializes_camel_case_size():
    """Should serialize itemsPerPage in camelCase."""
    page = PaginatedResponse[Item](
        items=[Item(id=1), Item(id=2)], total=5, page=1, items_per_page=2
    )

    data = page.model_dump(by_alias=True)

    assert data == {
        "items": [{"id": 1}, {"id": 2}],
        "total": 5,
        "page": 1,
        "itemsPerPage": 2,
    }


def test_paginated_response_total_pages():
    """Should round the page count up."""
    page = PaginatedResponse[Item](items=[], total=5, page=1, itemsPerPage=2)

    assert page.total_pages == 3
