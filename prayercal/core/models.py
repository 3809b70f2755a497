"""
Records passed between the source extractor and the calendar synthesizer.
All of them are immutable namedtuples; nothing here is persisted.
"""
from collections import namedtuple
from datetime import timezone

from icalendar import Calendar, Event

# One named prayer and its local begin time ("HH:MM", target zone) for one day.
PrayerObservation = namedtuple("PrayerObservation", ["name", "begins"])

# All prayers of one calendar day. date and prayers come from the same upstream entry.
DayRecord = namedtuple(
    "DayRecord",
    [
        "date",        # ISO "YYYY-MM-DD" in the target zone
        "hijri_date",  # display string, may be ""
        "prayers",     # tuple of PrayerObservation, upstream order
    ],
    defaults=("", ()),
)

CalendarEvent = namedtuple(
    "CalendarEvent",
    [
        "summary",      # "<name> Gebet"
        "start_utc",    # aware datetime, UTC
        "end_utc",      # start_utc + event duration
        "uid",
        "description",
        "name",         # prayer name the event was built from
    ],
)

# Result of PrayerSource.fetch(). fallback_used marks the "no record for today" warning.
FetchResult = namedtuple("FetchResult", ["record", "fallback_used", "requested_date"])


class SynthesisStatus:
    """Outcome kind of a synthesize() call."""
    CREATED = "created"
    NO_OBLIGATORY_PRAYERS = "no_obligatory_prayers"


SynthesisResult = namedtuple("SynthesisResult", ["status", "document"], defaults=(None,))


class CalendarDocument(namedtuple("CalendarDocument", ["name", "prod_id", "events", "generated_at"])):
    """Complete calendar artifact; serialised wholesale with to_ical()."""

    __slots__ = ()

    def to_calendar(self) -> Calendar:
        cal = Calendar()
        cal.add("prodid", self.prod_id)
        cal.add("version", "2.0")
        cal.add("name", self.name)
        cal.add("x-wr-calname", self.name)

        dtstamp = self.generated_at.astimezone(timezone.utc)
        for item in self.events:
            event = Event()
            event.add("uid", item.uid)
            event.add("dtstamp", dtstamp)
            event.add("dtstart", item.start_utc)
            event.add("dtend", item.end_utc)
            event.add("summary", item.summary)
            event.add("description", item.description)
            cal.add_component(event)
        return cal

    def to_ical(self) -> bytes:
        return self.to_calendar().to_ical()
