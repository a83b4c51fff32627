"""Logging setup for processes embedding the VitalWatch engines."""

from __future__ import annotations

import logging

from vitalwatch.core.config.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def resolve_level(name: str) -> int:
    """Map a level name ('debug', 'INFO', ...) to its value; unknown names mean INFO."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings.

    Engine modules only emit through ``logging.getLogger(__name__)``; handler
    and level choices belong to the embedding process.
    """
    logging.basicConfig(level=resolve_level(settings.log_level), format=LOG_FORMAT)
    logging.getLogger(__name__).debug("Logging configured at %s", settings.log_level.upper())
