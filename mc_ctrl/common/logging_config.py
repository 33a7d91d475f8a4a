"""Central logging configuration utilities for mc_ctrl.

Logging stays on the standard library; the CLI (or an embedding web layer)
calls `configure_logging` once and modules use `get_logger(__name__)`.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

_LEVEL_MAP = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def resolve_level(level: str | int | None = None) -> int:
    """Translate a level name (or None, meaning `MC_LOG_LEVEL`) to a number.

    Unknown names fall back to INFO.
    """
    if level is None:
        level = os.environ.get("MC_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return _LEVEL_MAP.get(level.strip().upper(), logging.INFO)
    return level


def configure_logging(level: str | int | None = None, *, force: bool = False) -> None:
    """Configure root logger.

    Order of precedence for level:
    1. Explicit `level` argument if given
    2. Environment variable `MC_LOG_LEVEL`
    3. Fallback to `INFO`
    """
    logging.basicConfig(
        level=resolve_level(level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a project logger, configuring logging lazily on first access."""
    logger = logging.getLogger(name or "mc_ctrl")
    if not logging.getLogger().handlers:  # pragma: no cover - defensive
        configure_logging()
    return logger


__all__ = ["configure_logging", "get_logger", "resolve_level"]
