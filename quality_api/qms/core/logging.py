from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional, Union

from qms.core.settings import get_app_settings

# Per-request values stamped on every record
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | user=%(user_id)s | %(message)s"

# Libraries that log below WARNING on every request or hash
_NOISY_LOGGERS = ("passlib", "aiosqlite", "multipart", "azure.core.pipeline.policies.http_logging_policy")


class RequestContextFilter(logging.Filter):
    """Copy the correlation id and the signed-in user id onto each record ('-' when unset)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        record.user_id = user_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str, None] = None) -> None:
    """
    Route all logging to stdout through the request context filter.

    The level defaults to the LOG_LEVEL setting. Handlers installed earlier
    (basicConfig, uvicorn defaults on the root logger) are replaced.
    """
    if level is None:
        level = get_app_settings().LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
