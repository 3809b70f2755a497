"""
Exception taxonomy for the prayer calendar pipeline.
Every hard failure is a PrayerCalendarError; the runner maps them to a non-zero exit.
"""


class PrayerCalendarError(Exception):
    """Base error for anything that aborts a run"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigError(PrayerCalendarError):
    """Configuration file unreadable or holding invalid values"""
    pass


class ExtractionFailure(PrayerCalendarError):
    """The source extractor could not produce a day record"""
    pass


class FetchError(ExtractionFailure):
    """Upstream unreachable or answered with a non-success status"""
    pass


class MalformedSourceError(ExtractionFailure):
    """Embedded JSON missing, unparsable, or not shaped as expected"""
    pass


class SynthesisError(PrayerCalendarError):
    """A day record could not be turned into calendar events"""
    pass


class WriteError(PrayerCalendarError):
    """The calendar file could not be written"""
    pass
