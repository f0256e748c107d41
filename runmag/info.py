"""Informational output, time helpers and log file naming."""

from __future__ import annotations

import sys
import time
from datetime import datetime, timezone

from runmag.devices import KNOWN_BUS_DEVICES

_COUNT_GAIN_TABLE = (
    "    -----------------------------------------------------------------------\n"
    "    |    Cycle Count/Gain/Sensitivity        |     RM3100 Measurement     |\n"
    "    |---------------------------------------------------------------------|\n"
    "    | Cycle |   Gain   |                     |                            |\n"
    "    | Count | (LSB/uT) | Sensitivity(nT/LSB) | in count | microTesla (uT) |\n"
    "    |---------------------------------------------------------------------|\n"
    "    |   50  |    20    |      50.000         |   3000   |     150.000     |\n"
    "    |  100  |    38    |      26.316         |   3000   |      78.947     |\n"
    "    |  200  |    75    |      13.333         |   3000   |      40.000     |\n"
    "    |  300  |   113    |       8.850         |   3000   |      26.549     |\n"
    "    |  400  |   150    |       6.667         |   3000   |      20.000     |\n"
    "    -----------------------------------------------------------------------\n"
    "From: RM3100_FAQ_R02.pdf\n\n"
)

_SBC_LIST_INTRO = (
    "\nList of some known single board computer types\n"
    "  For default distibutions of Linux.\n"
    "  Remember, these may be remapped (or not mapped at all) by the device tree.\n"
    "  (use -b to specify the bus number required\n\n"
    " Index        SBC Name                        Path      Bus Number \n"
)

_LOG_NAME_FORMAT = "%Y%m%d-runmag.log"


def current_time_millis() -> int:
    """Return the wall clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def get_utc() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def format_sbc_list() -> str:
    """Return the table of known single board computer I2C buses."""
    rows = "".join(
        f"   {int(dev.enum_val):2d}      {dev.sbc_string}             "
        f"{dev.dev_path}        {dev.bus_number}\n"
        for dev in KNOWN_BUS_DEVICES
    )
    return _SBC_LIST_INTRO + rows + "\n\n"


def list_sbcs() -> None:
    """Print the known single board computer list to stdout and exit with status 0."""
    sys.stdout.write(format_sbc_list())
    sys.stdout.flush()
    raise SystemExit(0)


def format_count_gain_relationship() -> str:
    """Return the cycle count / gain / sensitivity table."""
    return _COUNT_GAIN_TABLE


def show_count_gain_relationship() -> None:
    """Print the cycle count / gain / sensitivity table to stdout and exit with status 0."""
    sys.stdout.write(format_count_gain_relationship())
    sys.stdout.flush()
    raise SystemExit(0)


def build_log_file_path(output_dir: str, site_prefix: str, now: datetime | None = None) -> str:
    """Return <dir>/<site prefix>-<YYYYMMDD>-runmag.log for the given UTC time."""
    if now is None:
        now = get_utc()
    directory = output_dir
    if not directory.endswith("/"):
        print(f"Adding '/' to: {directory}")
        directory += "/"
    return f"{directory}{site_prefix or ''}-{now.strftime(_LOG_NAME_FORMAT)}"