"""
Generic handlers behind the CRUD operations of a resource.

Every handler receives an :class:`OperationContext` and returns either a
pydantic model (rendered by FastAPI through the route's ``response_model``)
or a ``Response``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from fastapi import Request, Response, status
from pydantic import BaseModel
from quill_core import PaginatedResponse

from .exceptions import MalformedInputError
from .projection import ProjectionContext

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from .resource import Operation, ResourceDescriptor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OperationContext:
    """
    Everything a handler needs to serve one request.

    Attributes:
        resource: descriptor of the resource being served.
        operation: the operation matched by the router.
        request: the incoming request.
        db: session scoped to the request.
    """

    resource: ResourceDescriptor[Any]
    operation: Operation
    request: Request
    db: AsyncSession

    @property
    def pk(self) -> int:
        return self.request.path_params["id"]

    @property
    def query(self) -> Mapping[str, str]:
        return self.request.query_params

    async def payload(self) -> Any:
        """
        Decoded JSON body, ``None`` when the body is empty.

        Raises:
            MalformedInputError: the body is not valid JSON.
        """
        body = await self.request.body()
        if not body.strip():
            return None
        try:
            return await self.request.json()
        except ValueError as e:
            logger.info(
                "Malformed JSON body for %s %s",
                self.resource.name,
                self.operation.name,
            )
            raise MalformedInputError("Request body is not valid JSON.") from e


async def list_items(ctx: OperationContext) -> PaginatedResponse[Any]:
    resource = ctx.resource
    schemas = resource.schemas
    context = ProjectionContext.COLLECTION_READ

    page = resource.pagination.paginate(ctx.query)
    criteria = resource.search.parse(resource.model, ctx.query)
    items, total = await resource.repository.list(
        ctx.db,
        lookups=resource.search.to_lookups(criteria),
        limit=page.limit,
        offset=page.offset,
        related=schemas.relations(context),
    )
    return PaginatedResponse[schemas.collection](
        items=[schemas.render(context, item) for item in items],
        total=total,
        page=page.number,
        items_per_page=page.limit,
    )


async def create_item(ctx: OperationContext) -> BaseModel:
    schemas = ctx.resource.schemas
    data = schemas.accept(await ctx.payload(), creating=True)
    instance = await ctx.resource.repository.create(
        ctx.db, data, related=schemas.relations(ProjectionContext.ITEM_READ)
    )
    return schemas.render(ProjectionContext.ITEM_READ, instance)


async def retrieve_item(ctx: OperationContext) -> BaseModel:
    schemas = ctx.resource.schemas
    instance = await ctx.resource.repository.get(
        ctx.db, ctx.pk, related=schemas.relations(ProjectionContext.ITEM_READ)
    )
    return schemas.render(ProjectionContext.ITEM_READ, instance)


async def update_item(ctx: OperationContext) -> BaseModel:
    """
    Overwrite the write fields carried by the payload.

    The payload is validated before the record is looked up, so an invalid
    body is rejected with 422 even for an unknown id.
    """
    schemas = ctx.resource.schemas
    data = schemas.accept(await ctx.payload(), creating=False)
    instance = await ctx.resource.repository.update(
        ctx.db,
        ctx.pk,
        data,
        related=schemas.relations(ProjectionContext.ITEM_READ),
    )
    return schemas.render(ProjectionContext.ITEM_READ, instance)


async def delete_item(ctx: OperationContext) -> Response:
    await ctx.resource.repository.delete(ctx.db, ctx.pk)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
