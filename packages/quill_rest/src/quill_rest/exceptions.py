"""
HTTP errors raised by the resource layer.

All of them are ``HTTPException`` subclasses so FastAPI renders them as
``{"detail": ...}`` without extra handlers.
"""

from typing import Any, Iterable

from fastapi import HTTPException, status


class ResourceError(HTTPException):
    """Base class for errors raised while serving a resource operation."""

    status_code_default: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Any = None, status_code: int | None = None) -> None:
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=detail,
        )


class NotFoundError(ResourceError):
    """The requested identifier has no matching record."""

    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, pk: Any) -> None:
        self.resource = resource
        self.pk = pk
        super().__init__(detail=f"{resource} with id {pk} not found.")


class ValidationFailedError(ResourceError):
    """
    A write payload violates a declared field constraint.

    Example:
        >>> raise ValidationFailedError.single("title", "at least 5 characters")
    """

    status_code_default = 422

    def __init__(self, violations: Iterable[dict[str, str]]) -> None:
        self.violations = [dict(v) for v in violations]
        super().__init__(detail=self.violations)

    @classmethod
    def single(cls, field: str, constraint: str) -> "ValidationFailedError":
        return cls([{"field": field, "constraint": constraint}])

    @classmethod
    def from_pydantic(cls, errors: Iterable[dict[str, Any]]) -> "ValidationFailedError":
        """Build from ``pydantic.ValidationError.errors()``."""
        violations = []
        for error in errors:
            loc = [str(part) for part in error.get("loc", ()) if part != "__root__"]
            violations.append(
                {"field": ".".join(loc) or "body", "constraint": error.get("msg", "")}
            )
        return cls(violations)

    @property
    def fields(self) -> list[str]:
        return [v["field"] for v in self.violations]


class MalformedInputError(ResourceError):
    """The request body or query string cannot be parsed into the expected shape."""

    status_code_default = status.HTTP_400_BAD_REQUEST


class StorageFailureError(ResourceError):
    """The storage layer could not complete the operation."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, *, unavailable: bool = False) -> None:
        super().__init__(
            detail=detail,
            status_code=(
                status.HTTP_503_SERVICE_UNAVAILABLE
                if unavailable
                else status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
        )
