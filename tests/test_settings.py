from datetime import datetime, timezone

import pytest

from runmag.devices import VERSION
from runmag.settings import (
    HelpRequested,
    Settings,
    format_settings,
    parse_command_line,
    show_settings,
    usage,
)


def test_source_case_command_line():
    s = parse_command_line(["-b", "3", "-j", "-S", "station42", "-k", "-s"])
    assert s.i2c_bus_number == 3
    assert s.json is True
    assert s.single_read is True
    assert s.log_output is True
    assert s.site_prefix == "station42"
    assert s.build_log_file is True


def test_defaults():
    s = parse_command_line([])
    assert s.i2c_bus_number == 1
    assert (s.cc_x, s.cc_y, s.cc_z) == (400, 400, 400)
    assert (s.x_gain, s.y_gain, s.z_gain) == (150, 150, 150)
    assert s.nos_reg_value == 60
    assert s.magnetometer_addr == 0x20
    assert s.local_temp_addr == 0x18
    assert s.remote_temp_addr == 0x19
    assert s.quiet is True and s.verbose is False
    assert s.tmrc_rate == 0x96
    assert s.output_file_path == "./logs/"
    assert s.version == VERSION


def test_cycle_count_sets_gain():
    s = parse_command_line(["-c", "200"])
    assert (s.cc_x, s.cc_y, s.cc_z) == (200, 200, 200)
    assert (s.x_gain, s.y_gain, s.z_gain) == (74, 74, 74)


@pytest.mark.parametrize("value", ["0", "801", "-5"])
def test_invalid_cycle_count(value):
    with pytest.raises(ValueError):
        parse_command_line(["-c", value])


@pytest.mark.parametrize("value, expected", [("1", 10), ("0", 10), ("20", 20)])
def test_nos_value(value, expected):
    assert parse_command_line(["-A", value]).nos_reg_value == expected


def test_hex_addresses():
    s = parse_command_line(["-M", "21", "-L", "1a", "-R", "0x1F"])
    assert s.magnetometer_addr == 0x21
    assert s.local_temp_addr == 0x1A
    assert s.remote_temp_addr == 0x1F


def test_numeric_options_and_flags():
    s = parse_command_line(["-D", "100", "-t", "150", "-g", "1", "-b", "12x", "-HZTCP"])
    assert s.cmm_sample_rate == 100
    assert s.tmrc_rate == 150
    assert s.sampling_mode == 1
    assert s.i2c_bus_number == 12
    assert s.hide_raw and s.show_total and s.ts_milliseconds
    assert s.read_back_cc_regs and s.show_parameters


def test_verbose_then_quiet():
    s = parse_command_line(["-v", "-q"])
    assert s.quiet is True and s.verbose is False
    s = parse_command_line(["-q", "-v"])
    assert s.quiet is False and s.verbose is True


def test_output_path_option():
    s = parse_command_line(["-O", "/tmp/mag"])
    assert s.output_dir == "/tmp/mag"
    assert s.build_log_file is True


def test_site_prefix_too_long():
    with pytest.raises(ValueError):
        parse_command_line(["-S", "x" * 32])


def test_help_raises(capsys):
    with pytest.raises(HelpRequested):
        parse_command_line(["-h"])
    assert "Display this help." in capsys.readouterr().out


def test_unknown_option_raises():
    with pytest.raises(HelpRequested):
        parse_command_line(["-x"])


def test_version_exits(capsys):
    with pytest.raises(SystemExit) as info:
        parse_command_line(["-V"])
    assert info.value.code == 0
    assert f"Version: {VERSION}" in capsys.readouterr().out


def test_list_sbcs_exits(capsys):
    with pytest.raises(SystemExit) as info:
        parse_command_line(["-a"])
    assert info.value.code == 0
    assert "Raspberry Pi 3/4" in capsys.readouterr().out


def test_count_gain_exits(capsys):
    with pytest.raises(SystemExit):
        parse_command_line(["-E"])
    assert "RM3100_FAQ_R02.pdf" in capsys.readouterr().out


def test_non_option_arguments_printed(capsys):
    s = parse_command_line(["extra", "-j", "more"])
    assert s.json is True
    assert "non-option ARGV-elements: extra more " in capsys.readouterr().out


def test_build_log_path():
    s = parse_command_line(["-S", "station42"])
    now = datetime(2020, 6, 19, 12, 0, tzinfo=timezone.utc)
    path = s.build_log_path(now)
    assert path == "./logs/station42-20200619-runmag.log"
    assert s.output_file_path == path


def test_set_output_file_path_and_build(capsys):
    s = Settings(site_prefix="abc")
    s.set_output_file_path("/data")
    path = s.build_log_path(datetime(2021, 1, 2, tzinfo=timezone.utc))
    assert path == "/data/abc-20210102-runmag.log"


def test_set_output_file_path_too_long():
    with pytest.raises(ValueError):
        Settings().set_output_file_path("a" * 1025)


def test_set_log_roll_over():
    s = Settings()
    s.set_log_roll_over("12:30")
    assert s.log_output_time == "12:30"


def test_format_settings():
    s = parse_command_line(["-b", "3", "-j"])
    text = format_settings(s)
    assert "   I2C bus path as string:                     /dev/i2c-3\n" in text
    assert "   Format output as JSON:                      TRUE\n" in text
    assert "   Device sampling mode:                       POLL\n" in text
    assert "X: 400 (dec), Y: 400 (dec), Z: 400 (dec)" in text
    assert "   Magnetometer address:                       20 {hex)\n" in text


def test_show_settings_prints(capsys):
    show_settings(Settings())
    assert capsys.readouterr().out == format_settings(Settings())


def test_usage_names_program():
    text = usage("myprog")
    assert text.startswith(f"\nmyprog Version = {VERSION}\n")
    assert "Try callsign!" in text