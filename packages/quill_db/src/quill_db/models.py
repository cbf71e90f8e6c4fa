from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, ClassVar, Self

from sqlalchemy import DateTime, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .exceptions import DoesNotExistError, MultipleObjectsReturnedError

if TYPE_CHECKING:
    from .manager import ModelManager


class Model(AsyncAttrs, DeclarativeBase):
    """
    Declarative base of every Quill table.

    Concrete subclasses get an integer `id` primary key and an `objects`
    manager bound to the class. Abstract ones (`__abstract__ = True`) get
    no manager.

    Example:
        >>> class Category(Model):
        ...     __tablename__ = "categories"
        ...     name: Mapped[str] = mapped_column()
    """

    __abstract__ = True
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    objects: ClassVar[ModelManager[Self]]  # type: ignore[invalid-type-arguments]

    # Model-specific exception aliases
    DoesNotExist = DoesNotExistError
    MultipleObjectsReturned = MultipleObjectsReturnedError

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        from .manager import ModelManager

        if not cls.__dict__.get("__abstract__"):
            cls.objects = ModelManager(cls)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.__dict__.get('id')!r}>"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp_column() -> Mapped[datetime]:
    # Stamped in Python so every backend returns microsecond precision;
    # the server default only covers raw SQL inserts
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class TimestampMixin:
    """
    Adds ``created_at`` and ``updated_at``, both stamped on insert.

    ``updated_at`` has no ``onupdate`` hook: only writes that represent an
    edit refresh it, through :meth:`touch_values`. Flag flips such as
    publishing a post leave it as it was.

    Example:
        >>> class Post(Model, TimestampMixin):
        ...     __tablename__ = "posts"
        ...     title: Mapped[str] = mapped_column()
    """

    created_at: Mapped[datetime] = _timestamp_column()
    updated_at: Mapped[datetime] = _timestamp_column()

    @staticmethod
    def touch_values() -> dict[str, Any]:
        """Column values that mark a record as edited now."""
        return {"updated_at": utcnow()}
