"""Logging utilities for manifmt commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "manifmt"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the manifmt hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the manifmt logger with console output and an optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI invocations in one process do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[manifmt] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


class PackageLogAdapter(logging.LoggerAdapter):
    """Tag records with the package they concern.

    Messages gain a ``[<package>]`` prefix and records carry a ``package``
    attribute, so workspace runs can be read per member in a shared log.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return f"[{kwargs['extra']['package']}] {msg}", kwargs


def package_logger(logger: logging.Logger, package: str) -> PackageLogAdapter:
    """Return ``logger`` bound to ``package``."""
    return PackageLogAdapter(logger, {"package": package})


__all__ = ["PackageLogAdapter", "configure_logging", "get_logger", "package_logger"]
