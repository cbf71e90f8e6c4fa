"""
Core Pydantic schemas shared across modules.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound="BaseModel")


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic page of results returned by collection operations.

    Example:
        >>> class Item(BaseModel):
        ...     id: int
        ...
        >>> data = PaginatedResponse[Item](
        ...     items=[Item(id=1)], total=5, page=1, items_per_page=2
        ... )
        >>> data.total_pages
        3
        >>> data.model_dump(by_alias=True)["itemsPerPage"]
        2
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    items: list[T] = Field(..., description="Items in the current page")
    total: int = Field(..., description="Total number of matching items")
    page: int = Field(default=1, description="1-indexed page number")
    items_per_page: int = Field(
        ..., alias="itemsPerPage", description="Effective page size"
    )

    @property
    def total_pages(self) -> int:
        if self.items_per_page < 1:
            return 0
        return -(-self.total // self.items_per_page)
