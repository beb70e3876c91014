"""Logging configuration.

The stores take a ``logging.Logger`` in their constructor; nothing in the core
depends on this module having been called. Entry points (an API process, a
management script) call ``configure_logging()`` once at startup.
"""

import json
import logging
import sys
from typing import Optional

from restaurant_core.core.config import Settings, settings as default_settings

# Attributes every LogRecord has; anything else came in through ``extra=``
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, including any ``extra`` context."""

    def format(self, record):
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: Optional[Settings] = None) -> logging.Logger:
    """Configure the root logger - JSON in production, human-readable in dev."""
    config = config or default_settings

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))
    root_logger.handlers.clear()

    if config.log_format == "json" or not config.debug:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root_logger.addHandler(handler)
    return root_logger


def get_logger(name: str, logger: Optional[logging.Logger] = None) -> logging.Logger:
    """Return ``logger`` when injected, otherwise the module logger for ``name``."""
    return logger if logger is not None else logging.getLogger(name)
