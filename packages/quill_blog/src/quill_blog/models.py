"""
Post and Category tables.
"""

from typing import Optional

from quill_db.models import Model, TimestampMixin
from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Category(Model):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255))

    # Derived side; Post owns the foreign key
    posts: Mapped[list["Post"]] = relationship(back_populates="category")


class Post(Model, TimestampMixin):
    """
    A blog post, published when ``online`` is true.

    ``online`` is tri-state: ``None`` means the status was never set and is
    distinct from ``False``.
    """

    __tablename__ = "posts"

    title: Mapped[str] = mapped_column(String(255))
    slug: Mapped[Optional[str]] = mapped_column(String(255))
    content: Mapped[Optional[str]] = mapped_column(String(255))
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), index=True
    )
    category: Mapped[Optional[Category]] = relationship(back_populates="posts")
    online: Mapped[Optional[bool]] = mapped_column(Boolean)
