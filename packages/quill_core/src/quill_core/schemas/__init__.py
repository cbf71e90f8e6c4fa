from .parameter import MAX_SQL_INTEGER, PaginationParams
from .response import PaginatedResponse

__all__ = ["MAX_SQL_INTEGER", "PaginatedResponse", "PaginationParams"]
