"""Rich logging utilities."""

from __future__ import annotations

import logging
from typing import Optional

from rich.logging import RichHandler

LOGGER_NAMESPACE = "signalcraft"


def setup_logging(level: str | int = "INFO") -> None:
    """Configure root logger with a Rich handler."""

    if isinstance(level, str):
        numeric_level = logging.getLevelName(level.upper())
    else:
        numeric_level = level
    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, markup=True, show_path=False)],
    )
    logging.getLogger(LOGGER_NAMESPACE).setLevel(numeric_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the package namespace, ensuring setup has been applied."""

    if not logging.getLogger().handlers:
        setup_logging()
    if name is None:
        return logging.getLogger(LOGGER_NAMESPACE)
    return logging.getLogger(name)


__all__ = ["LOGGER_NAMESPACE", "setup_logging", "get_logger"]
