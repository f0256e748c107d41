from datetime import datetime, timezone

import pytest

from runmag.devices import (
    MCP9808_REG_AMBIENT_TEMP,
    PMMODE_ALL,
    RM3100_MAG_POLL,
    RM3100I2C_STATUS,
    RM3100I2C_XYZ,
    VERSION,
)
from runmag.i2c import I2CError
from runmag.main import (
    Reading,
    csv_header,
    decode_mag_sample,
    decode_temperature,
    format_csv,
    format_json,
    main,
    read_mag_cmm,
    read_mag_poll,
    read_temp,
)
from runmag.settings import Settings


class FakeBus:
    def __init__(self, blocks=None, status=(0x80,), fail=False):
        self.blocks = dict(blocks or {})
        self.status = list(status)
        self.fail = fail
        self.addresses = []
        self.writes = []
        self.status_reads = 0

    def set_address(self, address):
        self.addresses.append(address)

    def write(self, reg, value):
        self.writes.append((reg, value))

    def read(self, reg):
        assert reg == RM3100I2C_STATUS
        self.status_reads += 1
        if len(self.status) > 1:
            return self.status.pop(0)
        return self.status[0]

    def read_buf(self, reg, length):
        if self.fail:
            raise I2CError("transfer failed")
        data = self.blocks[reg]
        assert len(data) == length
        return data


def _encode_temp(value):
    bits = value & 0x1FFF
    return bytes((bits >> 8, bits & 0xFF))


def _encode_sample(x, y, z):
    return b"".join(v.to_bytes(3, "big", signed=True) for v in (x, y, z))


def test_decode_temperature_round_trip():
    for value in range(-4096, 4096, 37):
        assert decode_temperature(_encode_temp(value)) == value


def test_decode_temperature_ignores_flag_bits():
    assert decode_temperature(bytes((0xE1, 0x23))) == decode_temperature(bytes((0x01, 0x23)))
    assert decode_temperature(bytes((0x1F, 0xFF))) == -1


def test_decode_temperature_wrong_length():
    with pytest.raises(ValueError):
        decode_temperature(b"\x00")


def test_decode_mag_sample_round_trip_and_sign():
    values = (8388607, -8388608, -12345)
    assert decode_mag_sample(_encode_sample(*values)) == values
    assert decode_mag_sample(b"\xff" * 9) == (-1, -1, -1)


def test_decode_mag_sample_wrong_length():
    with pytest.raises(ValueError):
        decode_mag_sample(b"\x00" * 8)


def test_read_temp_reads_ambient_register():
    bus = FakeBus(blocks={MCP9808_REG_AMBIENT_TEMP: _encode_temp(-200)})
    assert read_temp(bus, 0x19) == -200
    assert bus.addresses == [0x19]


def test_read_temp_error_returns_none(capsys):
    bus = FakeBus(fail=True)
    assert read_temp(bus, 0x18) is None
    assert "I/O error" in capsys.readouterr().err


def test_read_mag_poll_requests_measurement_and_waits():
    sample = _encode_sample(1000, -2000, 3000)
    bus = FakeBus(blocks={RM3100I2C_XYZ: sample}, status=(0x00, 0x00, 0x80))
    assert read_mag_poll(bus, 0x20, 0) == (1000, -2000, 3000)
    assert bus.writes == [(RM3100_MAG_POLL, PMMODE_ALL)]
    assert bus.status_reads == 3
    assert bus.addresses == [0x20]


def test_read_mag_cmm_does_not_write():
    sample = _encode_sample(-5, 6, -7)
    bus = FakeBus(blocks={RM3100I2C_XYZ: sample}, status=(0x00, 0x80))
    assert read_mag_cmm(bus, 0x21) == (-5, 6, -7)
    assert bus.writes == []
    assert bus.addresses == [0x21]


def test_csv_header():
    assert csv_header(True) == '"time", "rtemp", "ltemp", "x", "y", "z", "total"\n'
    assert csv_header(False) == (
        '"time", "rtemp", "ltemp", "x", "y", "z", "rx", "ry", "rz", "total"\n'
    )


def _reading(remote=21.5, local=None):
    return Reading(
        raw=(1000, 2000, -3000),
        field=(1000.0, 2000.0, -3000.0),
        remote_temp=remote,
        local_temp=local,
    )


def test_format_csv_full_line():
    line = format_csv(_reading(), Settings(ts_milliseconds=True), 1234)
    assert line == '1234 , 21.50, "ERROR", 1.0000, 2.0000, -3.0000, 1, 2, -3\n'


def test_format_csv_utc_timestamp():
    ts = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    line = format_csv(_reading(), Settings(magnetometer_only=True, hide_raw=True), ts)
    assert line.startswith('"04 Mar 2021 05:06:07", ')
    assert len(line.rstrip("\n").split(", ")) == 4


def test_format_csv_cold_temperature_is_error():
    line = format_csv(_reading(remote=-150.0), Settings(remote_temp_only=True), 1)
    assert line.split(", ")[1] == '"ERROR"'


def test_format_csv_raw_truncates_toward_zero():
    reading = Reading(raw=(-1500, 1500, 999), field=(0.0, 0.0, 0.0))
    line = format_csv(reading, Settings(magnetometer_only=True), 0)
    assert line.rstrip("\n").split(", ")[-3:] == ["-1", "1", "0"]


def test_format_csv_total():
    reading = Reading(raw=(0, 0, 0), field=(3000.0, 4000.0, 0.0))
    line = format_csv(reading, Settings(magnetometer_only=True, show_total=True), 0)
    assert line.endswith(", 5.0000\n")


def test_format_json_full_line():
    line = format_json(_reading(local=-150.0), Settings(ts_milliseconds=True), 1234)
    assert line == (
        '{ "ts":"1234", "rt":21.50, "lt":0.0, "x":1.0000, "y":2.0000, "z":-3.0000, '
        '"rx":1, "ry":2, "rz":-3 }\n'
    )


def test_format_json_local_only_and_total():
    reading = Reading(raw=(0, 0, 0), field=(3000.0, 4000.0, 0.0), local_temp=20.0)
    line = format_json(reading, Settings(local_temp_only=True, show_total=True, hide_raw=True), 5)
    assert '"lt":20.00' in line
    assert '"rt"' not in line
    assert '"rx"' not in line
    assert line.endswith('"Tm": 5.0000 }\n')


def test_main_help_returns_one(capsys):
    assert main(["-h"]) == 1
    assert "Display this help" in capsys.readouterr().out


def test_main_invalid_cycle_count_returns_one(capsys):
    assert main(["-c", "900"]) == 1
    assert "cycle count" in capsys.readouterr().err


def test_main_version_exits_zero(capsys):
    with pytest.raises(SystemExit) as info:
        main(["-V"])
    assert info.value.code == 0
    assert VERSION in capsys.readouterr().out


def test_main_missing_bus_returns_one():
    assert main(["-b", "4096", "-s"]) == 1