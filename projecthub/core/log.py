from __future__ import annotations

import logging

from .settings import S

LOGGER_NAME = "projecthub"


def setup_logging() -> logging.Logger:
    logging.basicConfig(
        level=getattr(logging, S.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    return logging.getLogger(LOGGER_NAME)


def get_logger(name: str) -> logging.Logger:
    if name.startswith(LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
