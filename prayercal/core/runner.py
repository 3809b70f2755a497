"""
One run of the generator: fetch today's prayer times, build the calendar, write it.
Strictly sequential; any PrayerCalendarError aborts before the file is touched.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import requests

from prayercal.ical.synthesizer import filter_obligatory, synthesize
from prayercal.ical.writer import write_calendar
from prayercal.core.config import CalendarConfig
from prayercal.core.errors import PrayerCalendarError
from prayercal.core.models import SynthesisStatus
from prayercal.sources import get_source

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def log_startup(config: CalendarConfig, now: datetime) -> None:
    local_now = now.astimezone(ZoneInfo(config.time_zone))
    logger.info("Prayer calendar generator starting...")
    logger.info(f"Date: {local_now.strftime('%d.%m.%Y')}")
    logger.info(f"Time zone: {config.time_zone}")
    logger.info(f"System time (UTC): {now.astimezone(timezone.utc).isoformat()}")
    logger.info(f"Local time: {local_now.isoformat()}")


def run(
    config: CalendarConfig,
    now: Optional[datetime] = None,
    session: Optional[requests.Session] = None,
) -> int:
    """Execute the pipeline and return the process exit code"""
    now = now or datetime.now(timezone.utc)
    log_startup(config, now)

    try:
        source = get_source(config, session=session)
        fetched = source.fetch(now=now)
        if fetched.fallback_used:
            logger.warning(
                f"Calendar is built from {fetched.record.date}, not {fetched.requested_date}"
            )

        for prayer in filter_obligatory(fetched.record.prayers, config.obligatory_prayers):
            logger.info(f"{prayer.name}: {prayer.begins}")

        result = synthesize(fetched.record, config, now=now)
        if result.status == SynthesisStatus.NO_OBLIGATORY_PRAYERS:
            logger.info("Nothing to write, existing calendar left untouched")
            return EXIT_OK

        write_calendar(result.document, config.output_dir, config.output_filename)
    except PrayerCalendarError as e:
        logger.error(f"{e.__class__.__name__}: {e.message}")
        return EXIT_FAILURE
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_FAILURE

    logger.info("Prayer calendar generated successfully")
    return EXIT_OK
