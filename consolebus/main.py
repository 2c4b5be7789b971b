from __future__ import annotations

import logging

from consolebus.bus import EventBus, get_bus
from consolebus.logging import configure_logging
from consolebus.settings import BusSettings, get_settings

LOGGER = logging.getLogger(__name__)


def bootstrap(settings: BusSettings | None = None) -> EventBus:
    """Configure logging from settings and return the default bus."""
    settings = settings or get_settings()
    configure_logging(settings.log_dir, level=settings.log_level, file_name=settings.log_file_name)
    bus = get_bus()
    LOGGER.info(
        "Event bus ready",
        extra={"thread_safe": settings.thread_safe, "trace_events": settings.trace_events},
    )
    return bus
