from __future__ import annotations

import json
import logging

from app.joyeria.core.config import settings

# The per-request "http_request" line replaces uvicorn's access log.
_QUIET_LOGGERS = ("uvicorn.access", "passlib")


def configure_logging() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_json(logger: logging.Logger, payload: dict, level: int = logging.INFO) -> None:
    """Emits one JSON object per line; Decimal and UUID values are written as strings."""
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str, sort_keys=True))
