"""
Turn a DayRecord into a CalendarDocument: obligatory prayers only,
one fixed-length UTC event each.
"""
import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from prayercal.core.config import CalendarConfig
from prayercal.core.errors import SynthesisError
from prayercal.core.models import (
    CalendarDocument,
    CalendarEvent,
    DayRecord,
    PrayerObservation,
    SynthesisResult,
    SynthesisStatus,
)

logger = logging.getLogger(__name__)

DESCRIPTION_TEMPLATE = "{name} Gebetszeit automatisch aus alislam.org"
SUMMARY_TEMPLATE = "{name} Gebet"


def filter_obligatory(prayers, obligatory) -> List[PrayerObservation]:
    """Keep prayers named in obligatory (exact match), first occurrence of each name only."""
    seen = set()
    result = []
    for prayer in prayers:
        if prayer.name not in obligatory or prayer.name in seen:
            continue
        seen.add(prayer.name)
        result.append(prayer)
    return result


def make_uid(name: str, day: date, strategy: str = "random") -> str:
    """<name>-<yyyymmdd>-<token>. The random token changes on every run; "stable" derives it from name and day."""
    compact = day.strftime("%Y%m%d")
    if strategy == "stable":
        token = uuid.uuid5(uuid.NAMESPACE_URL, f"prayercal:{name}:{compact}")
    else:
        token = uuid.uuid4()
    return f"{name}-{compact}-{token}"


def local_start(day: date, begins: str, tz: ZoneInfo) -> datetime:
    """Combine a date and "HH:MM" into an aware datetime in tz."""
    try:
        hour_str, minute_str = begins.split(":")
        return datetime(day.year, day.month, day.day, int(hour_str), int(minute_str), tzinfo=tz)
    except (AttributeError, ValueError) as e:
        raise SynthesisError(f"Invalid prayer time {begins!r}") from e


def synthesize(record: DayRecord, config: CalendarConfig, now: Optional[datetime] = None) -> SynthesisResult:
    """Build the calendar document for one day, or report that nothing obligatory was found"""
    prayers = filter_obligatory(record.prayers, config.obligatory_prayers)
    if not prayers:
        logger.warning("No obligatory prayers found, calendar will not be written")
        return SynthesisResult(status=SynthesisStatus.NO_OBLIGATORY_PRAYERS)

    try:
        day = date.fromisoformat(record.date)
    except (TypeError, ValueError) as e:
        raise SynthesisError(f"Invalid record date {record.date!r}") from e

    tz = ZoneInfo(config.time_zone)
    duration = timedelta(minutes=config.event_duration_minutes)

    events = []
    for prayer in prayers:
        start_local = local_start(day, prayer.begins, tz)
        start_utc = start_local.astimezone(timezone.utc)
        events.append(
            CalendarEvent(
                summary=SUMMARY_TEMPLATE.format(name=prayer.name),
                start_utc=start_utc,
                end_utc=start_utc + duration,
                uid=make_uid(prayer.name, day, config.uid_strategy),
                description=DESCRIPTION_TEMPLATE.format(name=prayer.name),
                name=prayer.name,
            )
        )
        logger.debug(f"{prayer.name}: {start_local.isoformat()} -> {start_utc.isoformat()}")

    document = CalendarDocument(
        name=config.calendar_name,
        prod_id=config.prod_id,
        events=tuple(events),
        generated_at=now or datetime.now(timezone.utc),
    )
    return SynthesisResult(status=SynthesisStatus.CREATED, document=document)
