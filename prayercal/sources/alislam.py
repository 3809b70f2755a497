"""
alislam.org adhan page source.
The page is a Next.js app; the prayer timings live in the JSON of its
<script id="__NEXT_DATA__"> element, several days at a time.
"""
import json
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup
from pydantic import ValidationError

from prayercal.core.errors import MalformedSourceError
from prayercal.core.models import DayRecord, FetchResult, PrayerObservation
from .base import PrayerSource
from .schemas import DayTimings

NEXT_DATA_SCRIPT_ID = "__NEXT_DATA__"


def millis_to_local(millis: int, tz: ZoneInfo) -> datetime:
    """Epoch milliseconds to a zone-aware datetime, floored to the minute."""
    minutes = int(millis) // 60000
    return datetime.fromtimestamp(minutes * 60, tz=timezone.utc).astimezone(tz)


class AlIslamSource(PrayerSource):
    """Scrapes the embedded Next.js payload of https://www.alislam.org/adhan"""

    def fetch(self, now: Optional[datetime] = None) -> FetchResult:
        tz = ZoneInfo(self.config.time_zone)
        today = (now or datetime.now(timezone.utc)).astimezone(tz).date()

        html = self._fetch_page_content(self.config.source_url)
        next_data = self.extract_next_data(html)
        days = self.navigate_payload(next_data)

        entry, fallback_used = self.select_day(days, today, tz)
        record = self.normalize_day(entry, tz)
        self.logger.info(
            f"Selected prayer times for {record.date}"
            + (f" ({record.hijri_date})" if record.hijri_date else "")
        )
        return FetchResult(record=record, fallback_used=fallback_used, requested_date=today.isoformat())

    def extract_next_data(self, html: str) -> Dict[str, Any]:
        """Parse the __NEXT_DATA__ script element into a dict"""
        soup = BeautifulSoup(html, "html.parser")
        script = soup.find("script", id=NEXT_DATA_SCRIPT_ID)
        if script is None:
            raise MalformedSourceError(f"{NEXT_DATA_SCRIPT_ID} script not found")

        text = script.string or script.get_text()
        if not text or not text.strip():
            raise MalformedSourceError(f"{NEXT_DATA_SCRIPT_ID} script is empty")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedSourceError(f"{NEXT_DATA_SCRIPT_ID} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedSourceError(f"{NEXT_DATA_SCRIPT_ID} root is not an object")
        return data

    def navigate_payload(self, data: Dict[str, Any]) -> List[Any]:
        """Follow payload_path down to the multi-day timings list"""
        node: Any = data
        walked = []
        for key in self.config.payload_path:
            walked.append(key)
            if not isinstance(node, dict) or key not in node:
                raise MalformedSourceError(f"Missing '{'.'.join(walked)}' in page data")
            node = node[key]

        if not isinstance(node, list):
            raise MalformedSourceError(f"'{'.'.join(walked)}' is not a list")
        if not node:
            raise MalformedSourceError(f"'{'.'.join(walked)}' is empty")
        return node

    def select_day(self, days: List[Any], today: date, tz: ZoneInfo) -> Tuple[Any, bool]:
        """Return (entry, fallback_used): the entry dated today, else the first one"""
        for entry in days:
            if not isinstance(entry, dict) or not isinstance(entry.get("prayers"), list):
                continue
            entry_date = self._entry_date(entry, tz)
            if entry_date == today:
                return entry, False

        self.logger.warning(
            f"No prayer times found for {today.isoformat()}, falling back to first available day"
        )
        return days[0], True

    def _entry_date(self, entry: Dict[str, Any], tz: ZoneInfo) -> Optional[date]:
        raw = entry.get("date")
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return None
        try:
            return millis_to_local(raw, tz).date()
        except (OverflowError, OSError, ValueError) as e:
            self.logger.debug(f"Unusable day timestamp {raw}: {e}")
            return None

    def normalize_day(self, entry: Any, tz: ZoneInfo) -> DayRecord:
        """Validate one multiDayTimings entry and convert it into a DayRecord"""
        try:
            day = DayTimings.model_validate(entry)
        except ValidationError as e:
            raise MalformedSourceError(f"Unusable day record: {e}") from e

        try:
            prayers = tuple(
                PrayerObservation(
                    name=prayer.name,
                    begins=millis_to_local(prayer.time, tz).strftime("%H:%M"),
                )
                for prayer in day.prayers
                if isinstance(prayer.name, str)
            )
            day_date = millis_to_local(day.date, tz).date().isoformat()
        except (OverflowError, OSError, ValueError) as e:
            raise MalformedSourceError(f"Timestamp out of range in day record: {e}") from e

        skipped = len(day.prayers) - len(prayers)
        if skipped:
            self.logger.debug(f"Skipped {skipped} prayer entries without a usable name")

        return DayRecord(date=day_date, hijri_date=day.hijri_date, prayers=prayers)
