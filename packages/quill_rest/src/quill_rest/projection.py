"""
Projection contexts: which fields of a model are read or written by an operation.

A :class:`Projection` is a plain declaration (field names per context). It is
bound once to a model with :meth:`Projection.bind`, which generates the
pydantic schemas used to serialize responses and validate write payloads.

Example:
    >>> projection = Projection(
    ...     collection_read=("id", "title"),
    ...     item_read=("id", "title", "content"),
    ...     write=("title", "content"),
    ... )
    >>> schemas = projection.bind(Post)
    >>> schemas.project(ProjectionContext.COLLECTION_READ, post)
    {'id': 1, 'title': 'Hello'}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union, cast

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    create_model,
    model_validator,
)
from pydantic.alias_generators import to_camel
from quill_db.validator import ModelValidator
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    inspect,
)
from sqlalchemy.orm import ColumnProperty, RelationshipProperty

from .exceptions import MalformedInputError, ValidationFailedError

logger = logging.getLogger(__name__)

SQL_TO_PYTHON_TYPE: dict[Any, type[Any]] = {
    String: str,
    Text: str,
    Boolean: bool,
    Integer: int,
    Float: float,
    Numeric: float,
    DateTime: datetime,
    Date: date,
    Time: time,
    JSON: dict,
}

# Validation groups. "write" constraints always apply, "create" ones only
# when a new record is being created.
WRITE_GROUP = "write"
CREATE_GROUP = "create"


class ProjectionContext(str, Enum):
    COLLECTION_READ = "collection-read"
    ITEM_READ = "item-read"
    WRITE = "write"


def _read_config() -> ConfigDict:
    return ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _write_config() -> ConfigDict:
    return ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        # Unknown fields are dropped, never rejected
        extra="ignore",
    )


class NestedWriteSchema(BaseModel):
    """
    Base for nested relation payloads: either a reference by ``id`` or a
    new record carrying its required fields.
    """

    model_config = _write_config()

    required_on_create: ClassVar[tuple[str, ...]] = ()

    id: Optional[int] = None

    @model_validator(mode="after")
    def _require_fields_for_new_record(self) -> "NestedWriteSchema":
        if self.id is None:
            missing = [f for f in self.required_on_create if getattr(self, f) is None]
            if missing:
                raise ValueError(
                    f"{', '.join(missing)} required when no id is given"
                )
        return self


@dataclass(frozen=True, slots=True)
class Projection:
    """
    Field sets per projection context, plus write constraints.

    Attributes:
        collection_read: fields rendered by collection (list) operations.
        item_read: fields rendered by item operations (get, create, update).
        write: fields accepted by create and update.
        nested: projection of the related model for each relationship field.
        constraints: ``{group: {field: pydantic Field kwargs}}``.
    """

    collection_read: tuple[str, ...]
    item_read: tuple[str, ...]
    write: tuple[str, ...]
    nested: Mapping[str, Projection] = field(default_factory=dict)
    constraints: Mapping[str, Mapping[str, Mapping[str, Any]]] = field(
        default_factory=dict
    )

    def fields(self, context: ProjectionContext) -> tuple[str, ...]:
        if context is ProjectionContext.COLLECTION_READ:
            return self.collection_read
        if context is ProjectionContext.ITEM_READ:
            return self.item_read
        return self.write

    def all_fields(self) -> set[str]:
        return set(self.collection_read) | set(self.item_read) | set(self.write)

    def bind(self, model: type[Any]) -> ProjectionSchemas:
        return ProjectionSchemaGenerator(model, self).generate()


@dataclass(frozen=True, slots=True)
class ProjectionSchemas:
    """
    Pydantic schemas generated for one model, one per context.

    ``create`` and ``update`` both implement the write context: ``update``
    keeps every field optional so a PUT only overwrites what it carries.
    """

    model: type[Any]
    projection: Projection
    collection: type[BaseModel]
    item: type[BaseModel]
    create: type[BaseModel]
    update: type[BaseModel]

    def fields(self, context: ProjectionContext) -> tuple[str, ...]:
        return self.projection.fields(context)

    def schema(self, context: ProjectionContext) -> type[BaseModel]:
        if context is ProjectionContext.COLLECTION_READ:
            return self.collection
        if context is ProjectionContext.ITEM_READ:
            return self.item
        return self.create

    def relations(self, context: ProjectionContext) -> list[str]:
        """Relationship fields that must be loaded before rendering ``context``."""
        return [f for f in self.fields(context) if f in self.projection.nested]

    def render(self, context: ProjectionContext, obj: Any) -> BaseModel:
        return self.schema(context).model_validate(obj)

    def project(self, context: ProjectionContext, obj: Any) -> dict[str, Any]:
        """
        Mapping of JSON field name to value, restricted to ``context``.
        """
        return self.render(context, obj).model_dump(mode="json", by_alias=True)

    def accept(self, payload: Any, *, creating: bool) -> dict[str, Any]:
        """
        Validate a write payload and return the supplied write fields.

        Unknown keys are dropped. Nested relation payloads come back as dicts.

        Raises:
            MalformedInputError: payload is not a JSON object.
            ValidationFailedError: a field constraint is violated.
        """
        if not isinstance(payload, Mapping):
            raise MalformedInputError(
                f"Expected a JSON object, got {type(payload).__name__}."
            )
        schema = self.create if creating else self.update
        try:
            data = schema.model_validate(payload)
        except ValidationError as e:
            logger.info(
                "Rejected %s payload for %s: %s",
                "create" if creating else "update",
                self.model.__name__,
                e.error_count(),
            )
            raise ValidationFailedError.from_pydantic(e.errors()) from e
        return data.model_dump(exclude_unset=True)


class ProjectionSchemaGenerator:
    """
    Generates the pydantic schemas of a :class:`Projection` from the
    SQLAlchemy columns and relationships of ``model``.
    """

    def __init__(
        self, model: type[Any], projection: Projection, *, nested: bool = False
    ):
        ModelValidator.validate_model(model)
        ModelValidator.validate_fields(model, projection.all_fields())
        self.model = model
        self.projection = projection
        self.nested = nested
        self.mapper = inspect(model)
        self._columns: dict[str, Column[Any]] = {
            attr.key: cast("Column[Any]", attr.columns[0])
            for attr in self.mapper.attrs
            if isinstance(attr, ColumnProperty)
        }
        self._relationships: dict[str, RelationshipProperty[Any]] = dict(
            self.mapper.relationships.items()
        )
        self._nested_schemas: dict[str, ProjectionSchemas] = {}
        self._check_relations()

    def _check_relations(self) -> None:
        for name in self.projection.all_fields():
            rel = self._relationships.get(name)
            if rel is None:
                continue
            if rel.uselist:
                raise TypeError(
                    f"{self.model.__name__}.{name}: only many-to-one relations "
                    f"can be projected"
                )
            if name not in self.projection.nested:
                raise TypeError(
                    f"{self.model.__name__}.{name} is a relation; declare its "
                    f"nested projection"
                )

    @staticmethod
    def _get_python_type(column: Column[Any]) -> Any:
        """Resolves SQLAlchemy column type to Python type."""
        for sql_type, py_type in SQL_TO_PYTHON_TYPE.items():
            if isinstance(column.type, sql_type):
                return py_type
        return Any

    @staticmethod
    def _string_length(column: Column[Any]) -> int | None:
        return getattr(column.type, "length", None)

    def _relation_nullable(self, name: str) -> bool:
        rel = self._relationships[name]
        return all(col.nullable for col in rel.local_columns)

    def _constraints(self, name: str, *, creating: bool) -> dict[str, Any]:
        kwargs = dict(self.projection.constraints.get(WRITE_GROUP, {}).get(name, {}))
        if creating:
            create_rules = self.projection.constraints.get(CREATE_GROUP, {})
            kwargs.update(create_rules.get(name, {}))
        return kwargs

    def _nested(self, name: str) -> ProjectionSchemas:
        if name not in self._nested_schemas:
            target = self._relationships[name].mapper.class_
            self._nested_schemas[name] = ProjectionSchemaGenerator(
                target, self.projection.nested[name], nested=True
            ).generate()
        return self._nested_schemas[name]

    def _read_schema(self, context: ProjectionContext, suffix: str) -> type[BaseModel]:
        fields: dict[str, Any] = {}
        for name in self.projection.fields(context):
            if name in self._relationships:
                nested = self._nested(name).item
                if self._relation_nullable(name):
                    fields[name] = (Union[nested, None], Field(default=None))
                else:
                    fields[name] = (nested, Field())
                continue

            column = self._columns[name]
            py_type = self._get_python_type(column)
            if column.nullable:
                fields[name] = (
                    Union[py_type, None],
                    Field(default=None, description=column.comment),
                )
            else:
                fields[name] = (py_type, Field(description=column.comment))

        return create_model(
            self.model.__name__ + suffix,
            __config__=_read_config(),
            **fields,
        )

    def _write_fields(self, *, creating: bool) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for name in self.projection.write:
            if name in self._relationships:
                nested = self._nested(name).create
                fields[name] = (Union[nested, None], Field(default=None))
                continue

            column = self._columns[name]
            py_type = self._get_python_type(column)
            kwargs: dict[str, Any] = {"description": column.comment}
            length = self._string_length(column)
            if py_type is str and length:
                kwargs["max_length"] = length
            kwargs.update(self._constraints(name, creating=creating))

            has_default = (
                column.default is not None or column.server_default is not None
            )
            if column.nullable:
                fields[name] = (Union[py_type, None], Field(default=None, **kwargs))
            elif creating and not has_default:
                fields[name] = (py_type, Field(**kwargs))
            else:
                # Omittable, but an explicit null is still rejected
                fields[name] = (py_type, Field(default=None, **kwargs))
        return fields

    def _create_schema(self) -> type[BaseModel]:
        return create_model(
            self.model.__name__ + "Create",
            __config__=_write_config(),
            **self._write_fields(creating=True),
        )

    def _update_schema(self) -> type[BaseModel]:
        return create_model(
            self.model.__name__ + "Update",
            __config__=_write_config(),
            **self._write_fields(creating=False),
        )

    def _nested_write_schema(self) -> type[BaseModel]:
        """Write schema used when this model is embedded in a parent payload."""
        fields = self._write_fields(creating=False)
        fields.pop("id", None)
        required = tuple(
            name
            for name in self.projection.write
            if name in self._columns
            and not self._columns[name].nullable
            and self._columns[name].default is None
        )
        schema = create_model(
            self.model.__name__ + "Write",
            __base__=NestedWriteSchema,
            **fields,
        )
        schema.required_on_create = required
        return schema

    def generate(self) -> ProjectionSchemas:
        # Nested models only ever appear inside a parent payload
        create = self._nested_write_schema() if self.nested else self._create_schema()
        logger.debug("Generated projection schemas for %s", self.model.__name__)
        return ProjectionSchemas(
            model=self.model,
            projection=self.projection,
            collection=self._read_schema(
                ProjectionContext.COLLECTION_READ, "Collection"
            ),
            item=self._read_schema(ProjectionContext.ITEM_READ, "Detail"),
            create=create,
            update=self._update_schema(),
        )
