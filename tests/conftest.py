import json
import os
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
import requests

# Ensure Python path includes project root for `import prayercal`
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from prayercal.core.config import CalendarConfig  # noqa: E402

BERLIN = ZoneInfo("Europe/Berlin")

SCENARIO_A_TIMES = {
    "Fajr": "05:10",
    "Sunrise": "07:45",
    "Zuhr": "13:02",
    "Asr": "16:40",
    "Maghrib": "19:55",
    "Isha": "21:30",
}


def berlin_millis(day: str, hhmm: str = "00:00") -> int:
    """Epoch milliseconds of a Europe/Berlin wall-clock time."""
    y, m, d = (int(part) for part in day.split("-"))
    hour, minute = (int(part) for part in hhmm.split(":"))
    return int(datetime(y, m, d, hour, minute, tzinfo=BERLIN).timestamp() * 1000)


def make_day(day: str, times: dict, hijri: str = "") -> dict:
    return {
        "date": berlin_millis(day),
        "hijriDate": hijri,
        "prayers": [{"name": name, "time": berlin_millis(day, hhmm)} for name, hhmm in times.items()],
    }


def make_html(days: list) -> str:
    next_data = {
        "props": {"pageProps": {"defaultSalatInfo": {"multiDayTimings": days}}},
        "page": "/adhan",
    }
    return (
        "<!DOCTYPE html><html><head><title>Adhan</title></head><body>"
        "<div id=\"__next\"></div>"
        f"<script id=\"__NEXT_DATA__\" type=\"application/json\">{json.dumps(next_data)}</script>"
        "</body></html>"
    )


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session; records every GET."""

    def __init__(self, text: str = "", status_code: int = 200, exc: Exception = None):
        self.response = FakeResponse(text, status_code)
        self.exc = exc
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def config(tmp_path) -> CalendarConfig:
    return CalendarConfig(output_dir=str(tmp_path / "docs"))


@pytest.fixture
def scenario_a_html() -> str:
    return make_html([
        make_day("2026-10-18", {"Fajr": "05:08", "Zuhr": "13:02"}),
        make_day("2026-10-19", SCENARIO_A_TIMES, hijri="8 Jumada al-Awwal 1448"),
        make_day("2026-10-20", {"Fajr": "05:12", "Zuhr": "13:01"}),
    ])
