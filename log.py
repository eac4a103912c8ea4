# log.py
"""Logging setup shared by the service modules."""

from __future__ import annotations

import logging
import sys

LOGGER_NAMESPACE = "ge_dashboard"


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure the root logger once at startup."""
    fmt = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    # Calling twice must not duplicate output
    if not root.handlers:
        root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
