from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
import logging

import requests

from prayercal.core.config import CalendarConfig
from prayercal.core.errors import FetchError
from prayercal.core.models import FetchResult


class PrayerSource(ABC):
    """Base class for prayer time sources"""

    def __init__(self, config: CalendarConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def fetch(self, now: Optional[datetime] = None) -> FetchResult:
        """Get the prayer times record for today
        Args:
            now: Reference instant for "today", defaults to the current time
        Returns:
            FetchResult with the selected DayRecord
        Raises:
            FetchError, MalformedSourceError
        """
        pass

    def _fetch_page_content(self, url: str) -> str:
        """Single GET of url; any transport failure or non-2xx status is a FetchError"""
        self.logger.info(f"Fetching page content from {url}")
        try:
            response = self.session.get(url, timeout=self.config.request_timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Error fetching {url}: {e}") from e
        return response.text
