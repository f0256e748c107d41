"""Register maps, constants and known I2C bus locations for the RM3100 and MCP9808."""

from dataclasses import dataclass
from enum import IntEnum

VERSION = "0.1.3"

MAX_I2C_WRITE = 32

LOCAL = 0
REMOTE = 1

UTCBUFLEN = 64
MAXPATHBUFLEN = 1025
SITEPREFIXLEN = 32


class SensorPowerMode(IntEnum):
    """Power modes of the magnetometer."""

    POWER_DOWN = 0
    SUSPEND = 1
    ACTIVE = 255


class SensorStatus(IntEnum):
    """Status codes a sensor can report."""

    OK = 0
    INITIALIZED = 1
    UNKNOWN_ERROR = 2
    ERROR_NON_EXISTANT = 3
    ERROR_UNEXPECTED_DEVICE = 4
    PENDING = 255


# Device sampling modes
POLL = 0
CONTINUOUS = 1

# Continuous measurement mode bits
CMMMODE_START = 1
CMMMODE_DRDM = 4
CMMMODE_CMX = 16
CMMMODE_CMY = 32
CMMMODE_CMZ = 64
CMMMODE_ALL = CMMMODE_START | CMMMODE_CMX | CMMMODE_CMY | CMMMODE_CMZ

# Polled measurement mode bits
PMMODE_CMX = 16
PMMODE_CMY = 32
PMMODE_CMZ = 64
PMMODE_ALL = PMMODE_CMX | PMMODE_CMY | PMMODE_CMZ

# I2C bus speeds
I2C_STANDARD = 100000
I2C_FASTMODE = 1000000
I2C_HIGHSPEED = 3400000

CCP0 = 0xC8
CCP1 = 0x00

# Cycle count values
CC_50 = 0x32
CC_100 = 0x64
CC_200 = 0xC8
CC_300 = 0x12C
CC_400 = 0x190
CC_800 = 0x320

# Gain values
GAIN_20 = 20
GAIN_38 = 38
GAIN_75 = 75
GAIN_113 = 113
GAIN_150 = 150
GAIN_300 = 300

# CMM update rates (TMRC register values)
TMRC_VAL_600 = 0x92
TMRC_VAL_300 = 0x93
TMRC_VAL_150 = 0x94
TMRC_VAL_75 = 0x95
TMRC_VAL_37 = 0x96
TMRC_VAL_18 = 0x97
TMRC_VAL_9 = 0x98
TMRC_VAL_4P5 = 0x99
TMRC_VAL_2P3 = 0x9A
TMRC_VAL_1P2 = 0x9B
TMRC_VAL_0P6 = 0x9C
TMRC_VAL_0P3 = 0x9D
TMRC_VAL_0P15 = 0x9E
TMRC_VAL_0P07 = 0x9F

# BIST bit positions
BIST_BP0 = 0
BIST_BP1 = 1
BIST_BW0 = 2
BIST_BW1 = 3
BIST_XOK = 4
BIST_YOK = 5
BIST_ZOK = 6
BIST_STE = 7

# RM3100 addressing
RM3100_I2C_ADDRESS = 0x20
RM3100_I2C_ADDRESS_7BIT = 0x20
RM3100_I2C_ADDRESS_8BIT = 0x20 << 1
RM3100_VER_EXPECTED = 0x22

# RM3100 register map
RM3100_MAG_POLL = 0x00
RM3100I2C_CMM = 0x01
RM3100I2C_CCX_1 = 0x04
RM3100I2C_CCX_0 = 0x05
RM3100I2C_CCY_1 = 0x06
RM3100I2C_CCY_0 = 0x07
RM3100I2C_CCZ_1 = 0x08
RM3100I2C_CCZ_0 = 0x09
RM3100I2C_NOS = 0x0A
RM3100I2C_TMRC = 0x0B
RM3100I2C_XYZ = 0x24
RM3100I2C_MX = 0x24
RM3100I2C_MX_2 = 0x24
RM3100I2C_MX_1 = 0x25
RM3100I2C_MX_0 = 0x26
RM3100I2C_MY = 0x27
RM3100I2C_MY_2 = 0x27
RM3100I2C_MY_1 = 0x28
RM3100I2C_MY_0 = 0x29
RM3100I2C_MZ = 0x2A
RM3100I2C_MZ_2 = 0x2A
RM3100I2C_MZ_1 = 0x2B
RM3100I2C_MZ_0 = 0x2C
RM3100I2C_BIST_WR = 0x33
RM3100I2C_STATUS = 0x34
RM3100I2C_HSHAKE = 0x35
RM3100I2C_REVID = 0x36
RM3100I2C_READMASK = 0x80

RM3100I2C_POLLX = 0x10
RM3100I2C_POLLY = 0x20
RM3100I2C_POLLZ = 0x40
RM3100I2C_POLLXYZ = 0x70

CALIBRATION_TIMEOUT = 5000
DEG_PER_RAD = 180.0 / 3.14159265358979

RM3100I2C_ENABLED = 0x79
RM3100I2C_DISABLED = 0x00
RM3100_TEST3_REG = 0x72
RM3100_LROSCADJ_REG = 0x63
RM3100_LROSCADJ_VALUE = 0xA7
RM3100_SLPOSCADJ_VALUE = 0x08

# MCP9808 temperature sensor
MCP9808_LCL_I2CADDR_DEFAULT = 0x18
MCP9808_RMT_I2CADDR_DEFAULT = 0x19

MCP9808_REG_CONFIG = 0x01
MCP9808_REG_UPPER_TEMP = 0x02
MCP9808_REG_LOWER_TEMP = 0x03
MCP9808_REG_CRIT_TEMP = 0x04
MCP9808_REG_AMBIENT_TEMP = 0x05
MCP9808_REG_MANUF_ID = 0x06
MCP9808_REG_DEVICE_ID = 0x07
MCP9808_REG_RESOLUTION = 0x08

MCP9808_REG_CONFIG_SHUTDOWN = 0x0100
MCP9808_REG_CONFIG_CRITLOCKED = 0x0080
MCP9808_REG_CONFIG_WINLOCKED = 0x0040
MCP9808_REG_CONFIG_INTCLR = 0x0020
MCP9808_REG_CONFIG_ALERTSTAT = 0x0010
MCP9808_REG_CONFIG_ALERTCTRL = 0x0008
MCP9808_REG_CONFIG_ALERTSEL = 0x0004
MCP9808_REG_CONFIG_ALERTPOL = 0x0002
MCP9808_REG_CONFIG_ALERTMODE = 0x0001

MCP9808_MANID_EXPECTED = 0x0054
MCP9808_DEVREV_EXPECTED = 0x0400


class I2CBusEnum(IntEnum):
    """Indices of known single board computer I2C buses."""

    KHADAS_EDGE_I2C3 = 0
    VIM3_I2C_BUS3 = 1
    VIM3_I2C_BUS4 = 2
    NV_XAVIER_I2C_BUS = 3
    NV_NANO_I2C_BUS = 4
    ODROIDC0_I2C_BUS = 5
    ODROIDC1_I2C_BUS = 6
    ODROIDC2_I2C_BUS = 7
    ODROIDC4_I2C_BUS = 8
    ODROIDC4_I2C_BUS3 = 9
    ODROIDN2_I2C_BUS = 10
    ODROIDN2_I2C_BUS3 = 11
    ODROIDN2PLUS_I2C_BUS0 = 12
    ODROIDN2PLUS_I2C_BUS1 = 13
    RASPI_I2C_BUS = 14


@dataclass(frozen=True)
class BusDevice:
    """A known I2C bus location on a single board computer."""

    dev_path: str
    sbc_string: str
    enum_val: int
    bus_number: int


KNOWN_BUS_DEVICES: tuple[BusDevice, ...] = (
    BusDevice("/dev/i2c-3", "KHADAS EDGE bus 3 ", I2CBusEnum.KHADAS_EDGE_I2C3, 3),
    BusDevice("/dev/i2c-3", "KHADAS VIM3 bus 3 ", I2CBusEnum.VIM3_I2C_BUS3, 3),
    BusDevice("/dev/i2c-4", "KHADAS VIM3 bus 4 ", I2CBusEnum.VIM3_I2C_BUS4, 4),
    BusDevice("/dev/i2c-8", "NV Xavier   bus 8 ", I2CBusEnum.NV_XAVIER_I2C_BUS, 8),
    BusDevice("/dev/i2c-1", "NV Nano     bus 1 ", I2CBusEnum.NV_NANO_I2C_BUS, 1),
    BusDevice("/dev/i2c-1", "Odroid CO   bus 1 ", I2CBusEnum.ODROIDC0_I2C_BUS, 1),
    BusDevice("/dev/i2c-1", "Odroid C1   bus 1 ", I2CBusEnum.ODROIDC1_I2C_BUS, 1),
    BusDevice("/dev/i2c-2", "Odroid N2   bus 2 ", I2CBusEnum.ODROIDC2_I2C_BUS, 1),
    BusDevice("/dev/i2c-2", "Odroid C4   bus 1 ", I2CBusEnum.ODROIDC4_I2C_BUS, 2),
    BusDevice("/dev/i2c-3", "Odroid C4   bus 3 ", I2CBusEnum.ODROIDC4_I2C_BUS3, 3),
    BusDevice("/dev/i2c-2", "Odroid N2   bus 2 ", I2CBusEnum.ODROIDN2_I2C_BUS, 2),
    BusDevice("/dev/i2c-3", "Odroid N2   bus 3 ", I2CBusEnum.ODROIDN2_I2C_BUS3, 3),
    BusDevice("/dev/i2c-0", "Odroid N2+  bus 0 ", I2CBusEnum.ODROIDN2PLUS_I2C_BUS0, 0),
    BusDevice("/dev/i2c-1", "Odroid N2+  bus 1 ", I2CBusEnum.ODROIDN2PLUS_I2C_BUS1, 1),
    BusDevice("/dev/i2c-1", "Raspberry Pi 3/4  ", I2CBusEnum.RASPI_I2C_BUS, 1),
)