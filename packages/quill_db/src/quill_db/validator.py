import logging
from typing import Iterable, Type, TypeVar

from sqlalchemy import inspect

from .models import Model

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="Model")


class ModelValidator:
    """Checks run once when a model is bound to a resource."""

    @staticmethod
    def validate_model(model: Type[T]) -> Type[T]:
        """
        Ensure ``model`` is a concrete, mapped :class:`Model` subclass.

        Raises:
            TypeError: not a class, not a ``Model`` or not mapped to a table.
        """
        if not isinstance(model, type) or not issubclass(model, Model):
            name = getattr(model, "__name__", type(model).__name__)
            raise TypeError(f"{name} is not a quill_db.Model subclass")

        if getattr(model, "__tablename__", None) is None:
            raise TypeError(f"Model {model.__name__} is missing __tablename__")

        return model

    @staticmethod
    def field_names(model: Type[T]) -> set[str]:
        """Column and relationship attribute names mapped on the model."""
        return {attr.key for attr in inspect(model).attrs}

    @classmethod
    def validate_fields(cls, model: Type[T], fields: Iterable[str]) -> None:
        """
        Raises:
            TypeError: If any of ``fields`` is not mapped on the model.
        """
        missing = sorted(set(fields) - cls.field_names(model))
        if missing:
            raise TypeError(
                f"Model {model.__name__} has no field(s) {', '.join(missing)}"
            )
