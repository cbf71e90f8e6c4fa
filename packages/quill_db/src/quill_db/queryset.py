from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Sequence, Type, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import joinedload, selectinload

from .expressions import build_condition
from .models import Model

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import ColumnElement, Select


T = TypeVar("T", bound=Model)


class QuerySet(Generic[T]):
    """
    Represents a lazy database query for a specific model type.

    A QuerySet stores a SQLAlchemy `Select` statement and allows query
    conditions to be composed without executing the query immediately.
    Queries are executed only when calling an execution method like `fetch()`,
    `first()`, or `count()`.

    Examples:
        >>> qs = Post.objects.filter(title__icontains="hello")

        >>> qs = (Post.objects.filter(id__gt=10)
        ...       .exclude(online=False).order_by(Post.id.desc()))
    """

    def __init__(self, model: Type[T], stmt: Select):
        self.model: Type[T] = model
        self._stmt: Select = stmt

    def _clone(self, stmt: Select) -> QuerySet[T]:
        # Each modification returns a new instance
        return self.__class__(self.model, stmt)

    def filter(
        self, *conditions: ColumnElement[bool], **lookups: Any
    ) -> QuerySet[T]:
        """
        Add WHERE criteria to the query.

        Example:
            >>> Post.objects.filter(online=True, title__icontains="news")
            # SELECT * FROM posts WHERE online = 1 AND lower(title) LIKE ...;
        """
        if not conditions and not lookups:
            return self

        stmt = self._stmt.where(*conditions) if conditions else self._stmt
        for key, value in lookups.items():
            stmt = stmt.where(build_condition(self.model, key, value))
        return self._clone(stmt)

    def exclude(
        self, *conditions: ColumnElement[bool], **lookups: Any
    ) -> QuerySet[T]:
        """
        Add negative WHERE criteria to the query.

        Example:
            >>> Post.objects.exclude(online=True)
            # SELECT * FROM posts WHERE NOT (online IS 1);
        """
        from sqlalchemy import not_

        stmt = self._stmt
        for cond in conditions:
            stmt = stmt.where(not_(cond))
        for key, value in lookups.items():
            stmt = stmt.where(not_(build_condition(self.model, key, value)))
        return self._clone(stmt)

    def order_by(self, *criterion: Any) -> QuerySet[T]:
        """
        Add ORDER BY criteria. Strings are column names, '-' prefix for DESC.

        Example:
            >>> Post.objects.order_by("-id")
            # SELECT * FROM posts ORDER BY id DESC;
        """
        clauses = []
        for item in criterion:
            if isinstance(item, str):
                desc = item.startswith("-")
                col = getattr(self.model, item.lstrip("-"))
                clauses.append(col.desc() if desc else col.asc())
            else:
                clauses.append(item)
        return self._clone(self._stmt.order_by(*clauses))

    def limit(self, count: int) -> QuerySet[T]:
        return self._clone(self._stmt.limit(count))

    def offset(self, count: int) -> QuerySet[T]:
        return self._clone(self._stmt.offset(count))

    def select_related(self, *fields: str) -> QuerySet[T]:
        """
        Eagerly load many-to-one relationships with a JOIN.

        Example:
            >>> posts = await Post.objects.select_related("category").fetch(db)
            # SELECT posts.*, categories.* FROM posts
            # LEFT OUTER JOIN categories ON posts.category_id = categories.id;
        """
        stmt = self._stmt
        for field in fields:
            stmt = stmt.options(joinedload(getattr(self.model, field)))
        return self._clone(stmt)

    def prefetch_related(self, *fields: str) -> QuerySet[T]:
        """
        Eagerly load one-to-many relationships with a second SELECT ... IN.
        """
        stmt = self._stmt
        for field in fields:
            stmt = stmt.options(selectinload(getattr(self.model, field)))
        return self._clone(stmt)

    def fresh(self) -> QuerySet[T]:
        """
        Overwrite instances already present in the session identity map.

        Needed after bulk UPDATE statements, which bypass the ORM state.
        """
        return self._clone(self._stmt.execution_options(populate_existing=True))

    async def fetch(self, db: AsyncSession) -> Sequence[T]:
        """
        Execute query and return results as model instances.

        Example:
            >>> posts = await Post.objects.all().fetch(db)
        """
        result = await db.execute(self._stmt)
        return result.scalars().unique().all()

    async def first(self, db: AsyncSession) -> T | None:
        """
        Execute query and return the first result or None.
        """
        result = await db.execute(self._stmt.limit(1))
        return result.scalars().unique().one_or_none()

    async def count(self, db: AsyncSession) -> int:
        """
        Return total record count, ignoring LIMIT/OFFSET/ORDER BY.

        Example:
            >>> await Post.objects.filter(online=True).count(db)
            # SELECT count(*) FROM (SELECT ... WHERE online = 1) AS anon_1;
        """
        base = self._stmt.limit(None).offset(None).order_by(None)
        count_stmt = select(func.count()).select_from(base.subquery())
        return await db.scalar(count_stmt) or 0

    async def exists(self, db: AsyncSession) -> bool:
        return await self.count(db) > 0

    async def update(self, db: AsyncSession, **values: Any) -> int:
        """
        Execute a bulk UPDATE on the matched rows and return the row count.
        The caller owns the transaction.

        Example:
            >>> await Post.objects.filter(id=1).update(db, online=True)
            # UPDATE posts SET online = 1 WHERE id = 1;
        """
        where_clause = self._stmt.whereclause
        # Prevent accidental full-table updates.
        if where_clause is None:
            msg = "Refusing to update without filters"
            raise ValueError(msg)

        stmt = update(self.model).where(where_clause).values(**values)
        result = await db.execute(stmt)
        return getattr(result, "rowcount", 0)

    async def delete(self, db: AsyncSession) -> int:
        """
        Delete all records matched by the query and return the row count.
        The caller owns the transaction.
        """
        where_clause = self._stmt.whereclause
        if where_clause is None:
            msg = "Refusing to delete without filters"
            raise ValueError(msg)

        stmt = delete(self.model).where(where_clause)
        result = await db.execute(stmt)
        return getattr(result, "rowcount", 0)
