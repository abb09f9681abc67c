"""JSON logging for the litestate logger namespace.

Library modules only create loggers.  Hosts that want litestate's structured
transition lines without configuring logging themselves call
``configure_logging()`` once at startup.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from litestate.core.config import get_config

LOGGER_NAME = "litestate"
_HANDLER_MARKER = "_litestate_json"

_STRUCTURED_FIELDS = ("event", "entity_type", "entity_id", "field", "transition", "outcome", "from_state", "to_state")


class JsonFormatter(logging.Formatter):
    """Emit logs as structured JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        for key in _STRUCTURED_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(level: str | None = None, stream: IO[str] | None = None) -> logging.Logger:
    """Attach JSON handlers to the ``litestate`` logger; repeated calls are no-ops.

    ``level`` overrides ``LITESTATE_LOG_LEVEL``.  Records stop propagating to
    the root logger so they are not written twice by host handlers.
    """
    config = get_config()
    package_logger = logging.getLogger(LOGGER_NAME)
    if any(getattr(handler, _HANDLER_MARKER, False) for handler in package_logger.handlers):
        return package_logger

    resolved_level = (level or config.LOG_LEVEL).upper()
    package_logger.setLevel(getattr(logging, resolved_level, logging.INFO))
    formatter = JsonFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if config.LOG_FILE:
        handlers.append(logging.FileHandler(config.LOG_FILE))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        package_logger.addHandler(handler)

    package_logger.propagate = False
    return package_logger
