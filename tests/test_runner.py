from datetime import datetime, timedelta, timezone
from pathlib import Path

import requests
from icalendar import Calendar

from conftest import FakeSession, make_day, make_html
from prayercal import main as cli
from prayercal.core.runner import EXIT_FAILURE, EXIT_OK, run

NOW = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


def _output(config) -> Path:
    return Path(config.output_dir) / config.output_filename


def _events(path: Path):
    return Calendar.from_ical(path.read_bytes()).walk("VEVENT")


def test_scenario_a_today_present(config, scenario_a_html):
    code = run(config, now=NOW, session=FakeSession(scenario_a_html))

    assert code == EXIT_OK
    events = _events(_output(config))
    assert [str(e["SUMMARY"]) for e in events] == [
        "Fajr Gebet", "Zuhr Gebet", "Asr Gebet", "Maghrib Gebet", "Isha Gebet",
    ]
    assert events[0].decoded("DTSTART") == datetime(2026, 10, 19, 3, 10, tzinfo=timezone.utc)
    for event in events:
        assert event.decoded("DTEND") - event.decoded("DTSTART") == timedelta(minutes=10)


def test_scenario_b_only_future_records(config, caplog):
    html = make_html([
        make_day("2026-10-21", {"Fajr": "05:14", "Sunrise": "07:50", "Maghrib": "18:20"}),
        make_day("2026-10-22", {"Fajr": "05:15"}),
    ])

    with caplog.at_level("WARNING"):
        code = run(config, now=NOW, session=FakeSession(html))

    assert code == EXIT_OK
    events = _events(_output(config))
    assert [str(e["SUMMARY"]) for e in events] == ["Fajr Gebet", "Maghrib Gebet"]
    assert events[0].decoded("DTSTART") == datetime(2026, 10, 21, 3, 14, tzinfo=timezone.utc)
    assert "not 2026-10-19" in caplog.text


def test_odd_upstream_fields_still_produce_calendar(config):
    day = make_day("2026-10-19", {"Fajr": "05:10", "Isha": "21:30"})
    day["hijriDate"] = {"day": 8}
    day["prayers"].insert(1, {"name": None, "time": day["prayers"][0]["time"]})

    code = run(config, now=NOW, session=FakeSession(make_html([day])))

    assert code == EXIT_OK
    assert [str(e["SUMMARY"]) for e in _events(_output(config))] == ["Fajr Gebet", "Isha Gebet"]


def test_scenario_c_no_obligatory_prayers_leaves_file_alone(config):
    target = _output(config)
    target.parent.mkdir(parents=True)
    target.write_text("previous calendar")
    html = make_html([make_day("2026-10-19", {"Sunrise": "07:45", "Tahajjud": "03:30"})])

    code = run(config, now=NOW, session=FakeSession(html))

    assert code == EXIT_OK
    assert target.read_text() == "previous calendar"


def test_scenario_c_no_file_created(config):
    html = make_html([make_day("2026-10-19", {"Sunrise": "07:45"})])

    assert run(config, now=NOW, session=FakeSession(html)) == EXIT_OK
    assert not Path(config.output_dir).exists()


def test_scenario_d_missing_marker(config):
    target = _output(config)
    target.parent.mkdir(parents=True)
    target.write_text("previous calendar")

    code = run(config, now=NOW, session=FakeSession("<html><body>No data</body></html>"))

    assert code == EXIT_FAILURE
    assert target.read_text() == "previous calendar"


def test_scenario_d_no_file_created(config):
    assert run(config, now=NOW, session=FakeSession("<html></html>")) == EXIT_FAILURE
    assert not Path(config.output_dir).exists()


def test_fetch_error_exits_non_zero(config):
    session = FakeSession(exc=requests.ConnectionError("unreachable"))

    assert run(config, now=NOW, session=session) == EXIT_FAILURE
    assert not Path(config.output_dir).exists()


def test_write_error_exits_non_zero(config, scenario_a_html, tmp_path):
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory")

    code = run(config._replace(output_dir=str(blocker)), now=NOW, session=FakeSession(scenario_a_html))

    assert code == EXIT_FAILURE


def test_runs_twice_with_same_structure(config, scenario_a_html):
    run(config, now=NOW, session=FakeSession(scenario_a_html))
    first = _events(_output(config))
    run(config, now=NOW, session=FakeSession(scenario_a_html))
    second = _events(_output(config))

    def structure(events):
        return [(str(e["SUMMARY"]), e.decoded("DTSTART"), e.decoded("DTEND")) for e in events]

    assert structure(first) == structure(second)
    assert [str(e["UID"]) for e in first] != [str(e["UID"]) for e in second]


def test_cli_rejects_invalid_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "config.yaml"
    config_file.write_text("event_duration_minutes: -5\n")

    assert cli.main(["--config", str(config_file)]) == EXIT_FAILURE


def test_cli_passes_config_to_runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    seen = {}

    def fake_run(config):
        seen["config"] = config
        return EXIT_OK

    monkeypatch.setattr(cli, "run", fake_run)

    assert cli.main(["--output-dir", "public", "--log-level", "warning"]) == EXIT_OK
    assert seen["config"].output_dir == "public"
    assert seen["config"].log_level == "WARNING"
