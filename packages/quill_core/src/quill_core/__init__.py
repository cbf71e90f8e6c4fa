from .config import QuillSettings, quill_settings
from .schemas.parameter import MAX_SQL_INTEGER, PaginationParams
from .schemas.response import PaginatedResponse

__all__ = [
    "MAX_SQL_INTEGER",
    "PaginatedResponse",
    "PaginationParams",
    "QuillSettings",
    "quill_settings",
]
