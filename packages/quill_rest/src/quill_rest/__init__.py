from .app import QuillApp
from .exceptions import (
    MalformedInputError,
    NotFoundError,
    ResourceError,
    StorageFailureError,
    ValidationFailedError,
)
from .filters import FilterMode, SearchFilter
from .handlers import OperationContext
from .pagination import Page, PaginationPolicy
from .projection import Projection, ProjectionContext, ProjectionSchemas
from .repository import ResourceRepository
from .resource import ITEM_PATH, Operation, ResourceDescriptor, crud_operations

__all__ = [
    "ITEM_PATH",
    "FilterMode",
    "MalformedInputError",
    "NotFoundError",
    "Operation",
    "OperationContext",
    "Page",
    "PaginationPolicy",
    "Projection",
    "ProjectionContext",
    "ProjectionSchemas",
    "QuillApp",
    "ResourceDescriptor",
    "ResourceError",
    "ResourceRepository",
    "SearchFilter",
    "StorageFailureError",
    "ValidationFailedError",
    "crud_operations",
]
