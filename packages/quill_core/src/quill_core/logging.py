"""
Logging setup shared by Quill services.

Every record is stamped with the correlation id of the request being served
(set by ``quill_rest.middleware.RequestIDMiddleware``) and timestamped in UTC.
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(trace_str)s%(name)s: %(message)s"

correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def _stamp(record: logging.LogRecord) -> None:
    cid = correlation_id.get()
    # Not "cid": extra={} callers may already use short names
    record.correlation_id = cid
    record.trace_str = f"[{cid}] " if cid else ""


class CorrelationIdFilter(logging.Filter):
    """
    Adds ``correlation_id`` and ``trace_str`` to records.

    Attached to the handlers installed by :func:`setup_logging`, so third
    party formatters can use ``%(correlation_id)s`` too.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        _stamp(record)
        return True


class TraceFormatter(logging.Formatter):
    """ISO-8601 UTC timestamps, prefixed with the active correlation id."""

    converter = time.gmtime
    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        _stamp(record)
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _file_handler(
    log_file: Union[str, Path], max_bytes: int, backup_count: int
) -> Optional[logging.Handler]:
    path = Path(log_file).resolve()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except OSError as e:
        # Read-only filesystem: stdout only
        sys.stderr.write(f"Failed to setup log file {path}: {e}\n")
        return None


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    *,
    namespace: Optional[str] = None,
    max_bytes: int = 10_485_760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure stdout (and optionally rotating file) logging.

    Args:
        level: Level name (``"debug"``, ``"INFO"``...) or number. Unknown
            names fall back to INFO.
        log_file: Optional path of a rotating log file; its directory is
            created when missing.
        namespace: Configure only this logger tree instead of the root
            logger. Propagation to the root is then turned off.

    Calling it again replaces the handlers installed previously.

    Example:
        >>> setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    target = logging.getLogger(namespace)
    for handler in target.handlers[:]:
        target.removeHandler(handler)
        handler.close()
    target.setLevel(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        file_handler = _file_handler(log_file, max_bytes, backup_count)
        if file_handler is not None:
            handlers.append(file_handler)

    formatter = TraceFormatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(CorrelationIdFilter())
        target.addHandler(handler)

    target.propagate = namespace is None
    return target


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(value: str) -> Token:
    return correlation_id.set(value)


def reset_correlation_id(token: Token) -> None:
    correlation_id.reset(token)


@contextmanager
def scoped_correlation_id(value: str) -> Generator[None, None, None]:
    """
    Set the correlation id for the duration of the block.

    >>> with scoped_correlation_id("req-123"):
    ...     logger.info("tagged with req-123")
    """
    token = set_correlation_id(value)
    try:
        yield
    finally:
        reset_correlation_id(token)
