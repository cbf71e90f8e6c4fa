from dataclasses import dataclass
from typing import Mapping

from pydantic import ValidationError
from quill_core import MAX_SQL_INTEGER, PaginationParams, quill_settings

from .exceptions import MalformedInputError


@dataclass(frozen=True, slots=True)
class Page:
    number: int
    limit: int
    offset: int


@dataclass(frozen=True, slots=True)
class PaginationPolicy:
    """
    Page size bounds of one collection operation.

    Example:
        >>> policy = PaginationPolicy(items_per_page=2, maximum_items_per_page=2)
        >>> policy.paginate({"page": "3", "itemsPerPage": "100"})
        Page(number=3, limit=2, offset=4)
    """

    items_per_page: int = quill_settings.DEFAULT_ITEMS_PER_PAGE
    maximum_items_per_page: int = quill_settings.MAX_ITEMS_PER_PAGE
    client_items_per_page: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.items_per_page <= self.maximum_items_per_page:
            raise ValueError(
                "items_per_page must be between 1 and maximum_items_per_page"
            )

    def paginate(self, query: Mapping[str, str]) -> Page:
        """
        Resolve the page from query parameters.

        Raises:
            MalformedInputError: non-numeric values, ``page`` < 1, a negative
                ``itemsPerPage`` or a page whose offset storage cannot hold.
        """
        try:
            params = PaginationParams.model_validate(dict(query))
        except ValidationError as e:
            errors = ", ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise MalformedInputError(
                f"Invalid pagination parameters ({errors})."
            ) from e

        if not self.client_items_per_page:
            params.items_per_page = None
        limit, offset = params.resolve(
            default=self.items_per_page, maximum=self.maximum_items_per_page
        )
        if offset > MAX_SQL_INTEGER:
            raise MalformedInputError(f"Page {params.page} is out of range.")
        return Page(number=params.page, limit=limit, offset=offset)
