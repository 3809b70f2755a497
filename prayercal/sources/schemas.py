"""
Pydantic views of the per-day timing entries embedded in the adhan page.
Only the fields the extractor reads are declared; everything else is ignored.
"""
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PrayerTiming(BaseModel):
    """One {name, time} entry; time is epoch milliseconds. name may be anything upstream sends."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    time: int


class DayTimings(BaseModel):
    """One element of multiDayTimings."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    date: int
    hijri_date: str = Field(default="", alias="hijriDate")
    prayers: List[PrayerTiming]

    @field_validator("hijri_date", mode="before")
    @classmethod
    def _display_string(cls, value: Any) -> str:
        # Opaque display text; only rendered in logs
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)
