import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from quill_db.validator import ModelValidator
from sqlalchemy import Boolean, Integer, inspect

from .repository import storable_id

logger = logging.getLogger(__name__)


class FilterMode(str, Enum):
    EXACT = "exact"
    # Case-insensitive substring match
    PARTIAL = "partial"


LOOKUPS: dict[FilterMode, str] = {
    FilterMode.EXACT: "exact",
    FilterMode.PARTIAL: "icontains",
}

TRUE_VALUES = {"1", "true"}
FALSE_VALUES = {"0", "false"}


@dataclass(frozen=True, slots=True)
class SearchFilter:
    """
    Query-string filters accepted by a collection operation.

    Example:
        >>> search = SearchFilter({"id": FilterMode.EXACT, "title": FilterMode.PARTIAL})
        >>> search.parse(Post, {"title": "foo", "page": "2"})
        {'title': (<FilterMode.PARTIAL: 'partial'>, 'foo')}
    """

    properties: Mapping[str, FilterMode] = field(default_factory=dict)

    def validate(self, model: type[Any]) -> None:
        ModelValidator.validate_fields(model, list(self.properties))

    @staticmethod
    def _coerce(model: type[Any], name: str, raw: str) -> Any:
        column = inspect(model).columns[name]
        if isinstance(column.type, Boolean):
            lowered = raw.lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
            raise ValueError(f"'{raw}' is not a boolean")
        if isinstance(column.type, Integer):
            value = int(raw)
            if not storable_id(value):
                raise ValueError(f"'{raw}' is out of the integer column range")
            return value
        return raw

    def parse(
        self, model: type[Any], params: Mapping[str, str]
    ) -> dict[str, tuple[FilterMode, Any]]:
        """
        Map query parameters to ``{field: (mode, value)}``.

        Parameters that are not declared filters are ignored. A value that
        cannot be converted to the column type drops that filter.
        """
        criteria: dict[str, tuple[FilterMode, Any]] = {}
        for name, mode in self.properties.items():
            raw = params.get(name)
            if raw is None:
                continue
            try:
                value = (
                    self._coerce(model, name, raw) if mode is FilterMode.EXACT else raw
                )
            except ValueError:
                logger.info("Ignoring invalid %s filter value %r", name, raw)
                continue
            criteria[name] = (mode, value)
        return criteria

    @staticmethod
    def to_lookups(criteria: Mapping[str, tuple[FilterMode, Any]]) -> dict[str, Any]:
        """
        Storage lookups for parsed criteria.

        >>> SearchFilter.to_lookups({"title": (FilterMode.PARTIAL, "foo")})
        {'title__icontains': 'foo'}
        """
        return {
            f"{name}__{LOOKUPS[mode]}": value
            for name, (mode, value) in criteria.items()
        }
