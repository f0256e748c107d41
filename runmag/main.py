"""Command line logger for the RM3100 magnetometer and MCP9808 temperature sensors."""

from __future__ import annotations

import math
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from typing import TextIO

from runmag.devices import (
    CONTINUOUS,
    MCP9808_REG_AMBIENT_TEMP,
    PMMODE_ALL,
    POLL,
    RM3100_MAG_POLL,
    RM3100I2C_READMASK,
    RM3100I2C_STATUS,
    RM3100I2C_XYZ,
)
from runmag.i2c import I2CError
from runmag.info import current_time_millis, get_utc
from runmag.magnetometer import (
    MagnetometerError,
    open_i2c_bus,
    read_cycle_count_regs,
    setup_mag,
    start_cmm,
)
from runmag.settings import HelpRequested, Settings, parse_command_line, show_settings

_TEMP_LSB_CELSIUS = 0.0625
_TEMP_ERROR_THRESHOLD = -100.0
_TIMESTAMP_FORMAT = "%d %b %Y %H:%M:%S"
_MAG_SAMPLE_LEN = 9
_SECOND_POLL_INTERVAL = 0.1

_HEADER_HIDE_RAW = '"time", "rtemp", "ltemp", "x", "y", "z", "total"\n'
_HEADER_FULL = '"time", "rtemp", "ltemp", "x", "y", "z", "rx", "ry", "rz", "total"\n'


@dataclass(frozen=True)
class Reading:
    """One measurement: raw counts, field in nanotesla and temperatures in Celsius."""

    raw: tuple[int, int, int] = (0, 0, 0)
    field: tuple[float, float, float] = (0.0, 0.0, 0.0)
    remote_temp: float | None = None
    local_temp: float | None = None


def decode_temperature(data: bytes) -> int:
    """Decode the MCP9808 ambient temperature register into signed 1/16 degree steps."""
    if len(data) != 2:
        raise ValueError(f"temperature register holds 2 bytes, got {len(data)}")
    temp = (data[0] & 0x1F) * 256 + data[1]
    if temp > 4095:
        temp -= 8192
    return temp


def decode_mag_sample(data: bytes) -> tuple[int, int, int]:
    """Decode the nine measurement bytes into signed 24 bit X, Y and Z counts."""
    if len(data) != _MAG_SAMPLE_LEN:
        raise ValueError(f"measurement block holds {_MAG_SAMPLE_LEN} bytes, got {len(data)}")
    x, y, z = (
        int.from_bytes(data[offset:offset + 3], "big", signed=True) for offset in (0, 3, 6)
    )
    return x, y, z


def read_temp(bus, address: int) -> int | None:
    """Read a temperature sensor; return None (after reporting) if the transfer fails."""
    try:
        bus.set_address(address)
        data = bus.read_buf(MCP9808_REG_AMBIENT_TEMP, 2)
    except I2CError:
        print(
            f"Error : I/O error reading temp sensor at address: [0x{address:2X}].",
            file=sys.stderr,
        )
        return None
    return decode_temperature(data)


def _wait_for_drdy(bus) -> None:
    while not bus.read(RM3100I2C_STATUS) & RM3100I2C_READMASK:
        pass


def read_mag_cmm(bus, address: int) -> tuple[int, int, int]:
    """Wait for data ready in continuous mode and read the X, Y and Z counts."""
    bus.set_address(address)
    _wait_for_drdy(bus)
    return decode_mag_sample(bus.read_buf(RM3100I2C_XYZ, _MAG_SAMPLE_LEN))


def read_mag_poll(bus, address: int, drdy_delay: int = 0) -> tuple[int, int, int]:
    """Request one measurement, wait for data ready and read the X, Y and Z counts.

    drdy_delay is an extra wait in microseconds before polling the status register.
    """
    bus.set_address(address)
    bus.write(RM3100_MAG_POLL, PMMODE_ALL)
    if drdy_delay:
        time.sleep(drdy_delay / 1_000_000)
    _wait_for_drdy(bus)
    return decode_mag_sample(bus.read_buf(RM3100I2C_XYZ, _MAG_SAMPLE_LEN))


def csv_header(hide_raw: bool) -> str:
    """Return the column header line for plain output."""
    return _HEADER_HIDE_RAW if hide_raw else _HEADER_FULL


def _celsius(raw: int | None) -> float | None:
    return None if raw is None else raw * _TEMP_LSB_CELSIUS


def _to_nanotesla(raw: tuple[int, int, int], settings: Settings) -> tuple[float, float, float]:
    gains = (settings.x_gain, settings.y_gain, settings.z_gain)
    x, y, z = (count / settings.nos_reg_value / gain * 1000 for count, gain in zip(raw, gains))
    return x, y, z


def _trunc_thousands(value: int) -> int:
    quotient = abs(value) // 1000
    return quotient if value >= 0 else -quotient


def _is_error(value: float | None) -> bool:
    return value is None or value < _TEMP_ERROR_THRESHOLD


def _temperature_fields(reading: Reading, settings: Settings) -> list[tuple[str, float | None]]:
    if settings.magnetometer_only:
        return []
    if settings.remote_temp_only:
        return [("rt", reading.remote_temp)]
    if settings.local_temp_only:
        return [("lt", reading.local_temp)]
    return [("rt", reading.remote_temp), ("lt", reading.local_temp)]


def _microtesla(reading: Reading) -> list[float]:
    return [value / 1000 for value in reading.field]


def _timestamp_text(timestamp: int | datetime) -> str:
    if isinstance(timestamp, datetime):
        return timestamp.strftime(_TIMESTAMP_FORMAT)
    return str(int(timestamp))


def format_csv(reading: Reading, settings: Settings, timestamp: int | datetime) -> str:
    """Format a reading as one comma separated line.

    timestamp is either milliseconds since the epoch or a UTC datetime.
    """
    if isinstance(timestamp, datetime):
        parts = [f'"{_timestamp_text(timestamp)}"']
    else:
        parts = [f"{_timestamp_text(timestamp)} "]
    for _, value in _temperature_fields(reading, settings):
        parts.append('"ERROR"' if _is_error(value) else f"{value:.2f}")
    field = _microtesla(reading)
    parts.extend(f"{value:.4f}" for value in field)
    if not settings.hide_raw:
        parts.extend(str(_trunc_thousands(count)) for count in reading.raw)
    if settings.show_total:
        parts.append(f"{math.sqrt(sum(v * v for v in field)):.4f}")
    return ", ".join(parts) + "\n"


def format_json(reading: Reading, settings: Settings, timestamp: int | datetime) -> str:
    """Format a reading as one JSON object line.

    timestamp is either milliseconds since the epoch or a UTC datetime.
    """
    parts = [f'"ts":"{_timestamp_text(timestamp)}"']
    for key, value in _temperature_fields(reading, settings):
        parts.append(f'"{key}":0.0' if _is_error(value) else f'"{key}":{value:.2f}')
    field = _microtesla(reading)
    parts.extend(f'"{axis}":{value:.4f}' for axis, value in zip("xyz", field))
    if not settings.hide_raw:
        parts.extend(
            f'"r{axis}":{_trunc_thousands(count)}' for axis, count in zip("xyz", reading.raw)
        )
    if settings.show_total:
        parts.append(f'"Tm": {math.sqrt(sum(v * v for v in field)):.4f}')
    return "{ " + ", ".join(parts) + " }\n"


class _Output:
    """Where readings go: standard output or a daily log file."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.stream: TextIO = sys.stdout
        self._owned = False

    def open_log(self, announce: str) -> None:
        self.close()
        path = self.settings.build_log_path()
        try:
            self.stream = open(path, "a", encoding="utf-8")
        except OSError:
            print(f"{announce}{path}")
            raise
        self._owned = True
        print(f"{announce}{path}")

    def write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def close(self) -> None:
        if self._owned:
            self.stream.close()
            self._owned = False
            self.stream = sys.stdout


def _wait_next_second(previous: int | None) -> int:
    while True:
        now = int(time.time())
        time.sleep(_SECOND_POLL_INTERVAL)
        if now != previous:
            return now


def _run(settings: Settings, bus, output: _Output, current_day: int) -> None:
    setup_mag(settings, bus)
    if settings.show_parameters:
        show_settings(settings)
    if settings.read_back_cc_regs:
        read_cycle_count_regs(settings, bus)
    if settings.sampling_mode == CONTINUOUS:
        start_cmm(bus)
    if not settings.json:
        output.write(csv_header(settings.hide_raw))

    remote: float | None = 0.0
    local: float | None = 0.0
    raw: tuple[int, int, int] = (0, 0, 0)
    field: tuple[float, float, float] = (0.0, 0.0, 0.0)
    sec_count: int | None = None

    while True:
        if not settings.magnetometer_only:
            if settings.remote_temp_only:
                remote = _celsius(read_temp(bus, settings.remote_temp_addr))
            elif settings.local_temp_only:
                local = _celsius(read_temp(bus, settings.local_temp_addr))
            else:
                remote = _celsius(read_temp(bus, settings.remote_temp_addr))
                local = _celsius(read_temp(bus, settings.local_temp_addr))
        if not (settings.local_temp_only and settings.remote_temp_only):
            if settings.sampling_mode == POLL:
                raw = read_mag_poll(bus, settings.magnetometer_addr, settings.drdy_delay)
            else:
                raw = read_mag_cmm(bus, settings.magnetometer_addr)
            field = _to_nanotesla(raw, settings)

        reading = Reading(raw=raw, field=field, remote_temp=remote, local_temp=local)
        timestamp = current_time_millis() if settings.ts_milliseconds else get_utc()
        formatter = format_json if settings.json else format_csv
        output.write(formatter(reading, settings, timestamp))

        if settings.single_read:
            return
        sec_count = _wait_next_second(sec_count)
        now = get_utc()
        if settings.build_log_file and now.day != current_day:
            current_day = now.day
            output.open_log("\nNew Log File: ")


def main(argv: list[str] | None = None) -> int:
    """Run the logger; return the process exit status."""
    start = get_utc()
    try:
        settings = parse_command_line(argv)
    except HelpRequested:
        return 1
    except ValueError as exc:
        print(f"\n {exc}\n", file=sys.stderr)
        return 1

    output = _Output(settings)
    try:
        if settings.build_log_file:
            output.open_log("\nLog File: ")
        if settings.verbose:
            print(f"\nStartup UTC time: {time.asctime(start.timetuple())}")
        with open_i2c_bus(settings) as bus:
            _run(settings, bus, output, start.day)
    except (OSError, MagnetometerError) as exc:
        print(exc, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        output.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())