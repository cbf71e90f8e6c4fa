from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from sqlalchemy import func

if TYPE_CHECKING:
    from sqlalchemy.sql import ColumnElement

    from .models import Model


LOOKUP_SEPARATOR = "__"

OPERATORS: dict[str, Callable[[Any, Any], "ColumnElement[bool]"]] = {
    "exact": lambda c, v: c.is_(None) if v is None else c == v,
    "iexact": lambda c, v: func.lower(c) == func.lower(v),
    "contains": lambda c, v: c.contains(v, autoescape=True),
    "icontains": lambda c, v: func.lower(c).contains(str(v).lower(), autoescape=True),
    "gt": lambda c, v: c > v,
    "gte": lambda c, v: c >= v,
    "lt": lambda c, v: c < v,
    "lte": lambda c, v: c <= v,
    "in": lambda c, v: c.in_(v),
    "isnull": lambda c, v: c.is_(None) if v else c.isnot(None),
}


def parse_lookup(model: type["Model"], key: str) -> tuple[Any, str, str]:
    """
    Parse a lookup key into (column, operator, field_name).

    Supported format: 'field' or 'field__lookup' (e.g., 'title__icontains').
    Lookups across relationships (e.g., 'category__name') are rejected.
    """
    parts = key.split(LOOKUP_SEPARATOR)
    if len(parts) > 2:
        msg = (
            f"Unsupported lookup '{key}'. Lookups across relationships "
            f"are not supported."
        )
        raise ValueError(msg)

    field_name = parts[0]
    lookup = parts[1] if len(parts) > 1 else "exact"

    col = getattr(model, field_name, None)
    if col is None:
        msg = f"Field '{field_name}' not found on model {model.__name__}"
        raise AttributeError(msg)
    return col, lookup, field_name


def apply_lookup(col: Any, lookup: str, value: Any) -> "ColumnElement[bool]":
    """Apply a lookup operator to a SQLAlchemy column."""
    if lookup not in OPERATORS:
        supported = ", ".join(OPERATORS)
        msg = f"Unsupported lookup '{lookup}'. Supported: {supported}"
        raise ValueError(msg)

    return OPERATORS[lookup](col, value)


def build_condition(
    model: type["Model"], key: str, value: Any
) -> "ColumnElement[bool]":
    """
    Turn one keyword lookup into a WHERE expression.

    >>> build_condition(Post, "title__icontains", "foo")
    # lower(posts.title) LIKE '%' || 'foo' || '%' ESCAPE '/'
    """
    col, lookup, _ = parse_lookup(model, key)
    return apply_lookup(col, lookup, value)
