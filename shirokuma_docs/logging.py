"""Logging utilities for shirokuma-docs commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "shirokuma"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the shirokuma hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class FileLogAdapter(logging.LoggerAdapter):
    """Prefix each message with the document it concerns."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return f"{self.extra['file']}: {msg}", kwargs


def file_logger(logger: logging.Logger, path: str) -> FileLogAdapter:
    """Return ``logger`` bound to ``path`` for per-file warnings."""
    return FileLogAdapter(logger, {"file": path})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the shirokuma logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[shirokuma] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["FileLogAdapter", "configure_logging", "file_logger", "get_logger"]
