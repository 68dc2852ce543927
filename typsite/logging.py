"""Logging setup shared by the build, the watcher and the dev server."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

_LOGGER_NAME = "typsite"

# uvicorn.error and uvicorn.access propagate here once uvicorn runs with
# log_config=None, so server failures reach the same sinks as build output.
SERVER_LOGGER_NAME = "uvicorn"

CONSOLE_FORMAT = "[typsite] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a component logger under the typsite hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route typsite and uvicorn records to the console and an optional log file.

    Safe to call repeatedly: handlers installed by an earlier call are closed
    and replaced.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers = _build_handlers(level, log_file)

    logger = logging.getLogger(_LOGGER_NAME)
    _install(logger, handlers, level)
    _install(logging.getLogger(SERVER_LOGGER_NAME), handlers, level)
    return logger


def _build_handlers(level: int, log_file: Path | None) -> List[logging.Handler]:
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers: List[logging.Handler] = [stream_handler]

    if log_file is not None:
        log_file = log_file.expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        handlers.append(file_handler)

    return handlers


def _install(logger: logging.Logger, handlers: List[logging.Handler], level: int) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


__all__ = ["SERVER_LOGGER_NAME", "configure_logging", "get_logger"]
