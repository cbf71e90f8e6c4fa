from .db import close_db, create_all, get_db, init_db
from .exceptions import DoesNotExistError, MultipleObjectsReturnedError, QuillDBError
from .models import Model, TimestampMixin

__all__ = [
    "DoesNotExistError",
    "Model",
    "MultipleObjectsReturnedError",
    "QuillDBError",
    "TimestampMixin",
    "close_db",
    "create_all",
    "get_db",
    "init_db",
]
