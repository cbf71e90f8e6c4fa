from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import DoesNotExistError, MultipleObjectsReturnedError
from .models import Model
from .queryset import QuerySet

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import ColumnElement

T = TypeVar("T", bound=Model)


class ModelManager(Generic[T]):
    """
    Entry point for model-level database operations.

    Responsible for creating QuerySets and handling single-record actions.
    """

    def __init__(self, model: type[T]):
        self._model = model

    def _get_queryset(self) -> QuerySet[T]:
        return QuerySet(self._model, select(self._model))

    def all(self) -> QuerySet[T]:
        """
        Return a QuerySet containing all records.
        """
        return self._get_queryset()

    def filter(self, *conditions: ColumnElement[bool], **lookups: Any) -> QuerySet[T]:
        """
        Return a filtered QuerySet based on provided conditions.
        """
        return self._get_queryset().filter(*conditions, **lookups)

    def exclude(self, *conditions: ColumnElement[bool], **lookups: Any) -> QuerySet[T]:
        return self._get_queryset().exclude(*conditions, **lookups)

    def select_related(self, *fields: str) -> QuerySet[T]:
        """
        Return a QuerySet that joins the given many-to-one relations.
        """
        return self._get_queryset().select_related(*fields)

    def prefetch_related(self, *fields: str) -> QuerySet[T]:
        return self._get_queryset().prefetch_related(*fields)

    async def get(
        self,
        db: AsyncSession,
        *conditions: ColumnElement[bool],
        queryset: QuerySet[T] | None = None,
        **lookups: Any,
    ) -> T:
        """
        Retrieve a single object matching the given conditions.

        Raises:
            DoesNotExistError: If no object matches.
            MultipleObjectsReturnedError: If more than one object matches.
        """
        qs = (queryset or self._get_queryset()).filter(*conditions, **lookups)
        objs = await qs.limit(2).fetch(db)

        if not objs:
            msg = f"{self._model.__name__} matching query does not exist"
            raise DoesNotExistError(msg)
        if len(objs) > 1:
            msg = (
                f"get() returned more than one {self._model.__name__} "
                f"-- it returned {len(objs)}!"
            )
            raise MultipleObjectsReturnedError(msg)

        return objs[0]

    async def get_by_pk(
        self,
        db: AsyncSession,
        pk: Any,
        *,
        queryset: QuerySet[T] | None = None,
    ) -> T:
        """
        Retrieve a single object by its primary key.
        """
        return await self.get(db, self._model.id == pk, queryset=queryset)

    async def count(self, db: AsyncSession, **lookups: Any) -> int:
        """
        Count records matching the keyword lookups; no lookups counts all.

        Example:
            >>> await Post.objects.count(db, online=True)
        """
        return await self.filter(**lookups).count(db)

    async def create(self, db: AsyncSession, **fields: Any) -> T:
        """
        Create and persist a new model instance.
        """
        try:
            instance: T = self._model(**fields)
            db.add(instance)
            await db.commit()
            await db.refresh(instance)
        except SQLAlchemyError:
            # Logged by the caller
            await db.rollback()
            raise
        return instance

    async def update_by_pk(self, db: AsyncSession, pk: Any, **fields: Any) -> int:
        """
        Update the columns of one record in place and commit.

        Returns the number of updated rows (0 when the pk is unknown).
        """
        try:
            count = await self.filter(self._model.id == pk).update(db, **fields)
            await db.commit()
        except SQLAlchemyError:
            # Logged by the caller
            await db.rollback()
            raise
        return count

    async def delete_by_pk(
        self,
        db: AsyncSession,
        pk: Any,
        *,
        raise_if_missing: bool = False,
    ) -> int:
        """
        Delete a single object by primary key and return the number of deleted rows.
        """
        try:
            count = await self.filter(self._model.id == pk).delete(db)
            await db.commit()
        except SQLAlchemyError:
            # Logged by the caller
            await db.rollback()
            raise

        if raise_if_missing and count == 0:
            msg = f"{self._model.__name__} with id {pk} not found"
            raise DoesNotExistError(msg)

        return count
