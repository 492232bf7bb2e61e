"""
Logging setup shared by firmware-style entry points and library modules.
"""

from __future__ import annotations

import logging
import os

_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
_ROOT = "miniusv"
_configured = False


def _configure_root() -> logging.Logger:
    global _configured
    root = logging.getLogger(_ROOT)
    if not _configured:
        level_name = os.environ.get("MINIUSV_LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, level_name, logging.INFO))
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            root.addHandler(handler)
        _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, configuring the handler once."""
    _configure_root()
    return logging.getLogger(f"{_ROOT}.{name}")


__all__ = ["get_logger"]
