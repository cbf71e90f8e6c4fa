class QuillDBError(Exception):
    """Base class for all Quill DB exceptions."""


class DoesNotExistError(QuillDBError, ValueError):
    """Raised when a single object was expected but none was found."""


class MultipleObjectsReturnedError(QuillDBError, ValueError):
    """Raised when a single object was expected but multiple were found."""
