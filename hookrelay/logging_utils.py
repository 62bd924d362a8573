"""Logging configuration helpers."""

from __future__ import annotations

import logging

DIAGNOSTICS_LOGGER = "hookrelay.diagnostics"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def configure_logging(level: str = "INFO", diagnostics_level: str | None = None) -> None:
    """Configure root logging; hook diagnostics can be tuned separately."""
    logging.basicConfig(
        level=_level(level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if diagnostics_level:
        logging.getLogger(DIAGNOSTICS_LOGGER).setLevel(_level(diagnostics_level))
