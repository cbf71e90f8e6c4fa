"""
Resource descriptor: the operation table of one model.

The table is built and validated once, when the descriptor is created, and
mounted on an application with :meth:`quill_rest.app.QuillApp.add_resource`.

Example:
    >>> posts = ResourceDescriptor(
    ...     Post,
    ...     path="/posts",
    ...     projection=post_projection,
    ...     search=SearchFilter({"title": FilterMode.PARTIAL}),
    ...     pagination=PaginationPolicy(items_per_page=2, maximum_items_per_page=2),
    ... )
    >>> [op.name for op in posts.operations]
    ['list', 'create', 'get', 'update', 'delete']
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, Mapping, TypeVar

from fastapi import Depends, Request, status
from quill_core import PaginatedResponse
from quill_db.db import get_db
from quill_db.models import Model
from quill_db.validator import ModelValidator
from sqlalchemy.ext.asyncio import AsyncSession

from . import handlers
from .filters import FilterMode, SearchFilter
from .handlers import OperationContext
from .pagination import PaginationPolicy
from .projection import Projection, ProjectionContext
from .repository import ResourceRepository

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Model)

Handler = Callable[[OperationContext], Awaitable[Any]]

# Starlette convertor: only integer ids match, so "/count" never does
ITEM_PATH = "/{id:int}"

HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE"}


@dataclass(frozen=True, slots=True)
class Operation:
    """
    One row of the operation table.

    Attributes:
        name: unique operation name within the resource (``list``, ``count``...).
        method: HTTP verb.
        path: path relative to the resource path (``""``, ``/count``,
            ``/{id:int}/publish``).
        handler: coroutine serving the operation.
        input_context: projection applied to the request body, if any.
        output_context: projection applied to the response, if any.
        paginated: the response is a page of ``output_context`` items.
        status_code: success status.
        response_model: response schema of operations without an output
            projection (e.g. ``int``).
        summary: OpenAPI summary.
        openapi_extra: merged into the generated OpenAPI operation.
    """

    name: str
    method: str
    path: str
    handler: Handler
    input_context: ProjectionContext | None = None
    output_context: ProjectionContext | None = None
    paginated: bool = False
    status_code: int = status.HTTP_200_OK
    response_model: Any = None
    summary: str | None = None
    openapi_extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_item(self) -> bool:
        return self.path.startswith(ITEM_PATH)

    @property
    def is_static(self) -> bool:
        return "{" not in self.path


def crud_operations() -> list[Operation]:
    """The generic list/create/get/update/delete operations."""
    return [
        Operation(
            "list",
            "GET",
            "",
            handlers.list_items,
            output_context=ProjectionContext.COLLECTION_READ,
            paginated=True,
        ),
        Operation(
            "create",
            "POST",
            "",
            handlers.create_item,
            input_context=ProjectionContext.WRITE,
            output_context=ProjectionContext.ITEM_READ,
            status_code=status.HTTP_201_CREATED,
        ),
        Operation(
            "get",
            "GET",
            ITEM_PATH,
            handlers.retrieve_item,
            output_context=ProjectionContext.ITEM_READ,
        ),
        Operation(
            "update",
            "PUT",
            ITEM_PATH,
            handlers.update_item,
            input_context=ProjectionContext.WRITE,
            output_context=ProjectionContext.ITEM_READ,
        ),
        Operation(
            "delete",
            "DELETE",
            ITEM_PATH,
            handlers.delete_item,
            status_code=status.HTTP_204_NO_CONTENT,
        ),
    ]


class ResourceDescriptor(Generic[T]):
    """
    Binds a model to its projection, filters, pagination and operations.

    Raises ``TypeError`` or ``ValueError`` at construction when the table is
    inconsistent: unknown model fields, duplicate operation names or two
    operations answering the same verb and path.
    """

    def __init__(
        self,
        model: type[T],
        *,
        path: str,
        projection: Projection,
        search: SearchFilter | None = None,
        pagination: PaginationPolicy | None = None,
        operations: Iterable[Operation] | None = None,
        extra_operations: Iterable[Operation] = (),
        name: str | None = None,
    ):
        ModelValidator.validate_model(model)
        if not path.startswith("/") or path.endswith("/"):
            raise ValueError(
                f"Resource path must start with '/' and not end with it: {path!r}"
            )

        self.model = model
        self.path = path
        self.name = name or path.strip("/").replace("/", "_")
        self.projection = projection
        self.search = search or SearchFilter()
        self.pagination = pagination or PaginationPolicy()

        self.search.validate(model)
        self.schemas = projection.bind(model)
        self.repository: ResourceRepository[T] = ResourceRepository(model)

        table = list(crud_operations() if operations is None else operations)
        table.extend(extra_operations)
        self._validate_operations(table)
        # Static paths first; sort is stable so declaration order is kept
        self.operations: tuple[Operation, ...] = tuple(
            sorted(table, key=lambda op: not op.is_static)
        )
        logger.debug(
            "Resource %s bound to %s with operations %s",
            self.name,
            model.__name__,
            [op.name for op in self.operations],
        )

    @staticmethod
    def _validate_operations(table: list[Operation]) -> None:
        names: set[str] = set()
        routes: set[tuple[str, str]] = set()
        for op in table:
            method = op.method.upper()
            if method not in HTTP_METHODS:
                raise ValueError(
                    f"Operation {op.name!r}: unsupported method {op.method}"
                )
            if op.name in names:
                raise ValueError(f"Duplicate operation name {op.name!r}")
            if (method, op.path) in routes:
                raise ValueError(
                    f"Operation {op.name!r} duplicates route {method} {op.path or '/'}"
                )
            collection = ProjectionContext.COLLECTION_READ
            if op.paginated and op.output_context is not collection:
                raise ValueError(
                    f"Operation {op.name!r}: only collection reads can be paginated"
                )
            names.add(op.name)
            routes.add((method, op.path))

    def operation(self, name: str) -> Operation:
        for op in self.operations:
            if op.name == name:
                return op
        raise KeyError(name)

    def route_path(self, op: Operation) -> str:
        return self.path + op.path

    def response_model(self, op: Operation) -> Any:
        if op.output_context is None:
            return op.response_model
        if op.paginated:
            return PaginatedResponse[self.schemas.collection]
        return self.schemas.schema(op.output_context)

    def openapi_extra(self, op: Operation) -> dict[str, Any] | None:
        """
        Query parameters read by the handler itself are documented here.

        FastAPI never sees them as arguments: pagination and filter values
        are parsed leniently by the resource layer.
        """
        extra = dict(op.openapi_extra)
        if op.paginated:
            parameters = [
                _query_param("page", {"type": "integer", "minimum": 1, "default": 1}),
                _query_param(
                    "itemsPerPage",
                    {
                        "type": "integer",
                        "minimum": 0,
                        "maximum": self.pagination.maximum_items_per_page,
                        "default": self.pagination.items_per_page,
                    },
                ),
            ]
            for prop, mode in self.search.properties.items():
                description = (
                    "Case-insensitive substring match"
                    if mode is FilterMode.PARTIAL
                    else "Exact match"
                )
                parameters.append(
                    _query_param(prop, {"type": "string"}, description=description)
                )
            extra["parameters"] = parameters + list(extra.get("parameters", []))
        return extra or None

    def endpoint(self, op: Operation) -> Callable[..., Awaitable[Any]]:
        """
        FastAPI endpoint for ``op``.

        The signature is rebuilt so FastAPI injects the request, a database
        session and, for item routes, the ``id`` path parameter.
        """

        async def endpoint(request: Request, db: AsyncSession, **_path: Any) -> Any:
            return await op.handler(OperationContext(self, op, request, db))

        params = [
            inspect.Parameter(
                "request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request
            ),
        ]
        if op.is_item:
            params.append(
                inspect.Parameter(
                    "id", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=int
                )
            )
        params.append(
            inspect.Parameter(
                "db",
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                annotation=AsyncSession,
                default=Depends(get_db),
            )
        )
        endpoint.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]
        endpoint.__name__ = f"{self.name}_{op.name}"
        endpoint.__doc__ = op.handler.__doc__
        return endpoint


def _query_param(
    name: str, schema: dict[str, Any], *, description: str | None = None
) -> dict[str, Any]:
    param: dict[str, Any] = {"name": name, "in": "query", "required": False}
    if description:
        param["description"] = description
    param["schema"] = schema
    return param
