"""Logging setup for the API process."""

from __future__ import annotations

import logging

from ideanest.core.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings) -> None:
    """Attach a single stream handler to the ``ideanest`` logger."""
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("ideanest")
    logger.setLevel(level)
    if not any(getattr(handler, "_ideanest", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._ideanest = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    if settings.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
