from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Largest value a signed 64-bit INTEGER column (SQLite, PostgreSQL BIGINT) holds
MAX_SQL_INTEGER = 2**63 - 1


class PaginationParams(BaseModel):
    """
    Page-based pagination schema for collection requests.

    ``page`` is 1-indexed. ``items_per_page`` (``itemsPerPage`` on the wire)
    is the client-requested page size; it is optional and is clamped by
    :meth:`resolve` against the ceiling of the resource being listed.

    Examples
    --------
    Defaults::

        >>> params = PaginationParams()
        >>> params.page, params.items_per_page
        (1, None)

    Clamping against a resource ceiling::

        >>> PaginationParams(page=3, itemsPerPage=100).resolve(default=2, maximum=2)
        (2, 4)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        # Unrelated query params (filters) share the same query string
        extra="ignore",
    )

    page: Annotated[
        int,
        Field(default=1, ge=1, le=MAX_SQL_INTEGER, description="1-indexed page number"),
    ]

    items_per_page: Annotated[
        int | None,
        Field(
            default=None,
            ge=0,
            alias="itemsPerPage",
            description="Requested page size, clamped to the resource maximum",
        ),
    ]

    @model_validator(mode="after")
    def _raise_zero_page_size(self) -> Self:
        """
        A zero page size is raised to one instead of being rejected.

        >>> PaginationParams(itemsPerPage=0).items_per_page
        1
        """
        if self.items_per_page == 0:
            self.items_per_page = 1
        return self

    def get_limit(self, default: int, maximum: int) -> int:
        """
        Effective page size: the requested size (or the default), capped.

        >>> PaginationParams(itemsPerPage=5).get_limit(default=2, maximum=10)
        5
        """
        requested = self.items_per_page if self.items_per_page is not None else default
        return max(1, min(requested, maximum))

    def get_offset(self, limit: int) -> int:
        """
        Number of rows to skip for the current page.

        >>> PaginationParams(page=2).get_offset(20)
        20
        """
        return (self.page - 1) * limit

    def resolve(self, default: int, maximum: int) -> tuple[int, int]:
        """Return ``(limit, offset)`` for the given resource bounds."""
        limit = self.get_limit(default, maximum)
        return limit, self.get_offset(limit)
