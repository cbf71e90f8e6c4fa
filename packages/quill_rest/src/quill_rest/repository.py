from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Generic,
    Mapping,
    Sequence,
    TypeVar,
)

from quill_core import MAX_SQL_INTEGER
from quill_db.exceptions import DoesNotExistError
from quill_db.models import Model, TimestampMixin
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .exceptions import (
    NotFoundError,
    ResourceError,
    StorageFailureError,
    ValidationFailedError,
)

if TYPE_CHECKING:
    from quill_db.queryset import QuerySet
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Model)


def storable_id(value: int) -> bool:
    """Whether ``value`` fits a 64-bit INTEGER primary key column."""
    return -MAX_SQL_INTEGER - 1 <= value <= MAX_SQL_INTEGER


class ResourceRepository(Generic[T]):
    """
    Storage adapter used by the resource operations of one model.

    Translates storage failures into HTTP errors and resolves nested
    many-to-one payloads: ``{"id": 3}`` reuses an existing record, any other
    mapping creates a new one in the same transaction, ``None`` detaches.

    Example:
        >>> repo = ResourceRepository(Post)
        >>> data = {"title": "Hello", "category": {"name": "News"}}
        >>> post = await repo.create(db, data)
        >>> await repo.count(db, online=True)
        0
    """

    def __init__(self, model: type[T]):
        self.model = model
        self._mapper = inspect(model)

    @property
    def resource_name(self) -> str:
        return self.model.__name__

    def queryset(self, related: Sequence[str] = ()) -> QuerySet[T]:
        qs = self.model.objects.all()
        if related:
            qs = qs.select_related(*related)
        return qs

    def _require_storable(self, pk: int) -> None:
        # Rejected before querying: the driver cannot bind such a value
        if not storable_id(pk):
            logger.info("%s not found with id=%s", self.resource_name, pk)
            raise NotFoundError(self.resource_name, pk)

    @asynccontextmanager
    async def storage_errors(
        self, db: AsyncSession, action: str
    ) -> AsyncIterator[None]:
        """Roll back and surface failures of the wrapped block as HTTP errors."""
        try:
            yield
        except ResourceError:
            await db.rollback()
            raise
        except OperationalError as e:
            await db.rollback()
            logger.exception(
                "Database connection error while trying to %s %s",
                action,
                self.resource_name,
            )
            raise StorageFailureError(
                "Database service temporarily unavailable. Please try again later.",
                unavailable=True,
            ) from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception(
                "Database error while trying to %s %s", action, self.resource_name
            )
            raise StorageFailureError("Database error. Please try again later.") from e

    async def list(
        self,
        db: AsyncSession,
        *,
        lookups: Mapping[str, Any] | None = None,
        limit: int,
        offset: int,
        related: Sequence[str] = (),
    ) -> tuple[Sequence[T], int]:
        """
        Return one page of matching records, ordered by id, and the total match count.
        """
        async with self.storage_errors(db, "list"):
            matching = self.model.objects.filter(**(lookups or {}))
            total = await matching.count(db)
            page = matching.select_related(*related).order_by("id")
            items = await page.limit(limit).offset(offset).fetch(db)
        logger.debug(
            "Listed %s %s of %s (limit=%s, offset=%s)",
            len(items),
            self.resource_name,
            total,
            limit,
            offset,
        )
        return items, total

    async def get(self, db: AsyncSession, pk: int, *, related: Sequence[str] = ()) -> T:
        self._require_storable(pk)
        async with self.storage_errors(db, "fetch"):
            try:
                return await self.model.objects.get_by_pk(
                    db, pk, queryset=self.queryset(related).fresh()
                )
            except DoesNotExistError as e:
                logger.info("%s not found with id=%s", self.resource_name, pk)
                raise NotFoundError(self.resource_name, pk) from e

    async def count(self, db: AsyncSession, **lookups: Any) -> int:
        async with self.storage_errors(db, "count"):
            return await self.model.objects.count(db, **lookups)

    async def create(
        self, db: AsyncSession, data: Mapping[str, Any], *, related: Sequence[str] = ()
    ) -> T:
        async with self.storage_errors(db, "create"):
            values = await self._resolve_relations(db, data)
            instance = self.model(**values)
            db.add(instance)
            await db.commit()
            pk = instance.id
        logger.info("Created %s id=%s", self.resource_name, pk)
        return await self.get(db, pk, related=related)

    async def update(
        self,
        db: AsyncSession,
        pk: int,
        data: Mapping[str, Any],
        *,
        related: Sequence[str] = (),
    ) -> T:
        """
        Overwrite the supplied fields of an existing record.

        Records with timestamps get ``updated_at`` refreshed.
        """
        instance = await self.get(db, pk)
        async with self.storage_errors(db, "update"):
            values = await self._resolve_relations(db, data)
            if issubclass(self.model, TimestampMixin):
                values.update(self.model.touch_values())
            for key, value in values.items():
                setattr(instance, key, value)
            await db.commit()
        logger.info("Updated %s id=%s fields=%s", self.resource_name, pk, sorted(data))
        return await self.get(db, pk, related=related)

    async def set_fields(self, db: AsyncSession, pk: int, **values: Any) -> None:
        """
        Write column values without loading the record or touching timestamps.

        Raises:
            NotFoundError: no record has this id; nothing is written.
        """
        self._require_storable(pk)
        async with self.storage_errors(db, "update"):
            count = await self.model.objects.update_by_pk(db, pk, **values)
        if count == 0:
            logger.info("%s not found with id=%s", self.resource_name, pk)
            raise NotFoundError(self.resource_name, pk)

    async def delete(self, db: AsyncSession, pk: int) -> None:
        self._require_storable(pk)
        async with self.storage_errors(db, "delete"):
            count = await self.model.objects.delete_by_pk(db, pk)
        if count == 0:
            logger.info("%s not found with id=%s", self.resource_name, pk)
            raise NotFoundError(self.resource_name, pk)
        logger.info("Deleted %s id=%s", self.resource_name, pk)

    async def _resolve_relations(
        self, db: AsyncSession, data: Mapping[str, Any]
    ) -> dict[str, Any]:
        """
        Replace nested relation payloads by foreign key values.
        """
        values = dict(data)
        for name, rel in self._mapper.relationships.items():
            if name not in values:
                continue
            payload = values.pop(name)
            fk_column = next(iter(rel.local_columns))
            fk_attr = self._mapper.get_property_by_column(fk_column).key

            if payload is None:
                values[fk_attr] = None
                continue

            target: type[Model] = rel.mapper.class_
            ref = payload.get("id")
            if ref is not None:
                exists = storable_id(ref) and (
                    await target.objects.filter(id=ref).exists(db)
                )
                if not exists:
                    raise ValidationFailedError.single(
                        name, f"{target.__name__} with id {ref} does not exist"
                    )
                values[fk_attr] = ref
                continue

            related_obj = target(**{k: v for k, v in payload.items() if k != "id"})
            db.add(related_obj)
            await db.flush()
            logger.info(
                "Created %s id=%s from nested payload", target.__name__, related_obj.id
            )
            values[fk_attr] = related_obj.id
        return values
