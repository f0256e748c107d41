import time
from datetime import datetime, timedelta, timezone

from runmag.devices import KNOWN_BUS_DEVICES
from runmag.info import (
    build_log_file_path,
    current_time_millis,
    format_count_gain_relationship,
    format_sbc_list,
    get_utc,
    list_sbcs,
    show_count_gain_relationship,
)

FIXED = datetime(2020, 4, 21, 12, 30, tzinfo=timezone.utc)


def test_current_time_millis_tracks_clock():
    before = int(time.time() * 1000)
    now = current_time_millis()
    after = int(time.time() * 1000)
    assert before - 1 <= now <= after + 1


def test_get_utc_is_utc_and_current():
    now = get_utc()
    assert now.utcoffset() == timedelta(0)
    assert abs(now.timestamp() - time.time()) < 5


def test_sbc_list_contains_every_device():
    text = format_sbc_list()
    for dev in KNOWN_BUS_DEVICES:
        assert dev.sbc_string in text
        assert dev.dev_path in text


def test_sbc_list_one_row_per_device():
    rows = [line for line in format_sbc_list().splitlines() if "/dev/i2c-" in line]
    assert len(rows) == len(KNOWN_BUS_DEVICES)
    assert rows[-1].split()[0] == str(int(KNOWN_BUS_DEVICES[-1].enum_val))
    assert rows[-1].split()[-1] == str(KNOWN_BUS_DEVICES[-1].bus_number)


def test_count_gain_table_contents():
    text = format_count_gain_relationship()
    assert "From: RM3100_FAQ_R02.pdf" in text
    assert "|  400  |   150    |       6.667         |   3000   |      20.000     |" in text


def test_build_log_file_path_with_trailing_slash(capsys):
    path = build_log_file_path("./logs/", "station42", FIXED)
    assert path == "./logs/station42-20200421-runmag.log"
    assert capsys.readouterr().out == ""


def test_build_log_file_path_adds_slash(capsys):
    path = build_log_file_path("/tmp/logs", "SITEPREFIX", FIXED)
    assert path == build_log_file_path("/tmp/logs/", "SITEPREFIX", FIXED)
    assert "Adding '/' to: /tmp/logs" in capsys.readouterr().out


def test_build_log_file_path_changes_with_day():
    first = build_log_file_path("./logs/", "SITEPREFIX", FIXED)
    second = build_log_file_path("./logs/", "SITEPREFIX", FIXED + timedelta(days=1))
    same_day = build_log_file_path("./logs/", "SITEPREFIX", FIXED + timedelta(hours=5))
    assert first != second
    assert first == same_day


def test_build_log_file_path_default_now():
    path = build_log_file_path("./logs/", "SITEPREFIX")
    assert path.startswith("./logs/SITEPREFIX-")
    assert path.endswith("-runmag.log")