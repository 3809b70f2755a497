from typing import Optional

import requests

from prayercal.core.config import CalendarConfig
from prayercal.core.errors import ConfigError
from .base import PrayerSource
from .alislam import AlIslamSource

__all__ = ["PrayerSource", "AlIslamSource", "get_source"]

_SOURCES = {
    "alislam": AlIslamSource,
}


def get_source(config: CalendarConfig, session: Optional[requests.Session] = None) -> PrayerSource:
    """Factory: return the source instance named by config.source_type."""
    cls = _SOURCES.get((config.source_type or "").lower())
    if not cls:
        raise ConfigError(f"Unknown prayer times source: {config.source_type}")
    return cls(config, session=session)
