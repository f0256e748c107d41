"""Configuration and control of the RM3100 magnetometer over I2C."""

from __future__ import annotations

import sys
import time

from runmag.devices import (
    CMMMODE_ALL,
    RM3100_MAG_POLL,
    RM3100_VER_EXPECTED,
    RM3100I2C_CCX_0,
    RM3100I2C_CCX_1,
    RM3100I2C_CCY_0,
    RM3100I2C_CCY_1,
    RM3100I2C_CCZ_0,
    RM3100I2C_CCZ_1,
    RM3100I2C_CMM,
    RM3100I2C_NOS,
    RM3100I2C_REVID,
    SensorStatus,
)
from runmag.i2c import I2CBus

# (upper bound in Hz, register value)
_SUPPORTED_RATES: tuple[tuple[int, int], ...] = (
    (2, 0x0A),
    (4, 0x09),
    (8, 0x08),
    (16, 0x07),
    (31, 0x06),
    (62, 0x05),
    (125, 0x04),
    (220, 0x03),
)

_SETUP_SETTLE_SECONDS = 0.1


class MagnetometerError(RuntimeError):
    """The magnetometer did not respond as expected."""


def cc_gain_equiv(cycle_count: int) -> int:
    """Return the gain (LSB/uT) for a cycle count: int(0.3671 * cc + 1.5)."""
    return int(0.3671 * (cycle_count & 0xFFFF) + 1.5) & 0xFFFF


def set_mag_sample_rate(settings, sample_rate: int) -> int:
    """Pick the smallest supported rate that covers sample_rate and store it."""
    sample_rate &= 0xFFFF
    chosen = next(
        (rate for rate, _ in _SUPPORTED_RATES[:-1] if sample_rate <= rate),
        _SUPPORTED_RATES[-1][0],
    )
    settings.cmm_sample_rate = chosen
    return chosen


def get_mag_sample_rate(settings) -> int:
    """Return the configured continuous measurement sample rate."""
    return settings.cmm_sample_rate


def open_i2c_bus(settings) -> I2CBus:
    """Open the I2C bus selected in the settings."""
    bus = I2CBus.open(settings.i2c_bus_number)
    if settings.verbose:
        print(f"Device handle i2c fd:  {bus.fd}")
        print("i2c_init OK!", flush=True)
    return bus


def set_nos_reg(settings, bus) -> None:
    """Write the (undocumented) NOS register."""
    print(
        "\nIn setNOSReg():: Setting undocumented NOS register to value: "
        f"{settings.nos_reg_value:2X}"
    )
    bus.write(RM3100I2C_NOS, settings.nos_reg_value)


def get_mag_rev(settings, bus) -> int:
    """Read and check the magnetometer revision id."""
    bus.set_address(settings.magnetometer_addr)
    settings.mag_rev_id = bus.read(RM3100I2C_REVID)
    if settings.mag_rev_id != RM3100_VER_EXPECTED:
        raise MagnetometerError(
            f"RM3100 REVID NOT CORRECT: RM3100 REVID: 0x{settings.mag_rev_id:X} "
            f"<> EXPECTED: 0x{RM3100_VER_EXPECTED:X}."
        )
    if settings.verbose:
        print(f"RM3100 Detected Properly: REVID: {settings.mag_rev_id:x}.")
    return settings.mag_rev_id


def setup_mag(settings, bus) -> SensorStatus:
    """Verify the device, clear the mode registers and set the cycle counts."""
    bus.set_address(settings.magnetometer_addr)
    get_mag_rev(settings, bus)
    bus.write(RM3100_MAG_POLL, 0)
    bus.write(RM3100I2C_CMM, 0)
    set_cycle_count_regs(settings, bus)
    time.sleep(_SETUP_SETTLE_SECONDS)
    return SensorStatus.OK


def run_bist(settings, bus) -> int:
    """Built-in self test; not supported by the device interface, always 0."""
    return 0


def start_cmm(bus) -> None:
    """Start continuous measurement on X, Y and Z."""
    bus.write(RM3100I2C_CMM, CMMMODE_ALL)


def set_cycle_count_regs(settings, bus) -> None:
    """Write the cycle count and NOS registers and update the gains."""
    bus.write(RM3100I2C_CCX_1, settings.cc_x >> 8)
    bus.write(RM3100I2C_CCX_0, settings.cc_x & 0xFF)
    settings.x_gain = cc_gain_equiv(settings.cc_x)
    bus.write(RM3100I2C_CCY_1, settings.cc_y >> 8)
    bus.write(RM3100I2C_CCY_0, settings.cc_y & 0xFF)
    settings.y_gain = cc_gain_equiv(settings.cc_y)
    # The Z registers receive the Y cycle count, as the device has always been configured.
    bus.write(RM3100I2C_CCZ_1, settings.cc_y >> 8)
    bus.write(RM3100I2C_CCZ_0, settings.cc_y & 0xFF)
    settings.z_gain = cc_gain_equiv(settings.cc_z)
    bus.write(RM3100I2C_NOS, settings.nos_reg_value & 0xFF)
    if settings.verbose:
        err = sys.stderr
        print(
            "\nIn setCycleCountRegs():: Setting NOS register to value: "
            f"{settings.nos_reg_value:2X}",
            file=err,
        )
        print(
            f"CycleCounts  - X: {settings.cc_x}, Y: {settings.cc_y}, Z: {settings.cc_x}.",
            file=err,
        )
        print(
            f"Gains        - X: {settings.x_gain}, Y: {settings.y_gain}, Z: {settings.z_gain}.",
            file=err,
        )
        print(f"NOS Register - {settings.nos_reg_value:2X}.", file=err)


def read_cycle_count_regs(settings, bus) -> bytes:
    """Read back and print the seven registers starting at CCX_1."""
    bus.set_address(settings.magnetometer_addr)
    regs = bus.read_buf(RM3100I2C_CCX_1, 7)
    for index, value in enumerate(regs):
        print(f"regCC[{index}]: 0x{value:X}")
    print()
    return regs