"""Logging configuration helpers."""

import logging
import os
from typing import Optional

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "correlation_id=%(correlation_id)s file_id=%(file_id)s %(message)s"
)


def _resolve_level(level_name: str) -> int:
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_logging(level_name: Optional[str] = None) -> None:
    """Configure root logging from LOG_LEVEL and a concise format."""
    level = _resolve_level(level_name or os.getenv("LOG_LEVEL", "INFO"))
    formatter = logging.Formatter(
        LOG_FORMAT, defaults={"correlation_id": "-", "file_id": "-"}
    )
    root_logger = logging.getLogger()

    if root_logger.handlers:
        root_logger.setLevel(level)
        for handler in root_logger.handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
        return

    logging.basicConfig(level=level)
    for handler in logging.getLogger().handlers:
        handler.setFormatter(formatter)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))


def context_logger(
    logger: logging.Logger, correlation_id: Optional[str] = None, file_id: Optional[str] = None
) -> logging.LoggerAdapter:
    """Wrap a logger so every record carries the message's correlation context."""
    return logging.LoggerAdapter(
        logger, {"correlation_id": correlation_id or "-", "file_id": file_id or "-"}
    )
