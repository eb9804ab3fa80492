"""Diagnostic sink for the generation pipeline.

All core modules log under the ``gql_netgraph`` logger hierarchy. The
library is silent until a caller attaches a handler or registers its own
logger with :func:`register_logger`.
"""

import logging

ROOT_LOGGER_NAME = "gql_netgraph"

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())

_registered: logging.Logger | None = None


def register_logger(logger: logging.Logger | None) -> None:
    """Route core diagnostics to ``logger``. Pass None to restore the default."""
    global _registered
    _registered = logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the registered logger, or a child of the package logger."""
    if _registered is not None:
        return _registered
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(name)
