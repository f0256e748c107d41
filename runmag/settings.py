"""Run-time settings for the magnetometer logger and their command line parsing."""

from __future__ import annotations

import getopt
import re
import sys
from dataclasses import dataclass
from datetime import datetime

from runmag.devices import (
    CC_400,
    CC_800,
    GAIN_150,
    KNOWN_BUS_DEVICES,
    LOCAL,
    MAXPATHBUFLEN,
    MCP9808_LCL_I2CADDR_DEFAULT,
    MCP9808_RMT_I2CADDR_DEFAULT,
    POLL,
    RM3100_I2C_ADDRESS,
    SITEPREFIXLEN,
    VERSION,
    I2CBusEnum,
)
from runmag.info import build_log_file_path, format_count_gain_relationship, format_sbc_list
from runmag.magnetometer import cc_gain_equiv

DEFAULT_OUTPUT_DIR = "./logs/"

_SHORT_OPTIONS = "?aA:b:B:c:CD:Ef:F:g:HhjklL:mM:O:PqrR:sS:Tt:vVZ"

_INT_PATTERN = re.compile(r"\s*([+-]?\d+)")
_HEX_PATTERN = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)")


class HelpRequested(Exception):
    """The command line asked for help, or could not be parsed; usage has been shown."""


def _atoi(text: str) -> int:
    match = _INT_PATTERN.match(text)
    return int(match.group(1)) if match else 0


def _scan_hex(text: str) -> int:
    match = _HEX_PATTERN.match(text)
    if not match:
        return 0
    value = int(match.group(2), 16)
    return -value if match.group(1) == "-" else value


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


@dataclass
class Settings:
    """Everything that controls a logging run."""

    sbc_type: int = I2CBusEnum.RASPI_I2C_BUS
    board_type: int = 0
    board_mode: int = LOCAL
    do_bist_mask: int = 0
    build_log_file: bool = False

    cc_x: int = CC_400
    cc_y: int = CC_400
    cc_z: int = CC_400
    x_gain: int = GAIN_150
    y_gain: int = GAIN_150
    z_gain: int = GAIN_150

    tmrc_rate: int = 0x96
    cmm_sample_rate: int = 400
    sampling_mode: int = POLL
    nos_reg_value: int = 60
    drdy_delay: int = 0
    read_back_cc_regs: bool = False
    mag_rev_id: int = 0

    hide_raw: bool = False
    i2c_bus_number: int = KNOWN_BUS_DEVICES[I2CBusEnum.RASPI_I2C_BUS].bus_number
    json: bool = False

    local_temp_only: bool = False
    local_temp_addr: int = MCP9808_LCL_I2CADDR_DEFAULT
    magnetometer_only: bool = False
    magnetometer_addr: int = RM3100_I2C_ADDRESS
    remote_temp_only: bool = False
    remote_temp_addr: int = MCP9808_RMT_I2CADDR_DEFAULT

    out_delay: int = 1_000_000
    quiet: bool = True
    show_parameters: bool = False
    single_read: bool = False
    ts_milliseconds: bool = False
    verbose: bool = False
    show_total: bool = False

    output_dir: str = DEFAULT_OUTPUT_DIR
    output_file_path: str = DEFAULT_OUTPUT_DIR
    site_prefix: str | None = None
    log_output_time: str | None = None
    log_output: bool = False
    version: str = VERSION

    def set_output_file_path(self, out_path: str) -> None:
        """Set the directory log files are written to."""
        if len(out_path) > MAXPATHBUFLEN - 1:
            raise ValueError(
                f"Output path length exceeds maximum allowed length ({MAXPATHBUFLEN - 1})"
            )
        self.output_dir = out_path
        self.output_file_path = out_path

    def set_log_roll_over(self, roll_time: str) -> None:
        """Set the UTC time of day at which log files roll over."""
        self.log_output_time = roll_time

    def build_log_path(self, now: datetime | None = None) -> str:
        """Compute and store the log file path for the given UTC time."""
        self.output_file_path = build_log_file_path(self.output_dir, self.site_prefix, now)
        return self.output_file_path


def format_settings(settings: Settings) -> str:
    """Return the human readable listing of the current settings."""
    s = settings
    path_str = f"/dev/i2c-{s.i2c_bus_number}"
    lines = [
        f"\nVersion = {s.version}\n",
        "\nCurrent Parameters:\n\n",
        f"   Log output path:                            {_flag(s.build_log_file)}\n",
        f"   Log output:                                 {_flag(s.log_output)}\n",
        f"   Log site prefix string:                     {s.site_prefix or ''}\n",
        f"   Output file path:                           {s.output_file_path}\n",
        f"   I2C bus number as integer:                  {s.i2c_bus_number} (dec)\n",
        f"   I2C bus path as string:                     {path_str}\n",
        f"   Built in self test (BIST) value:            {s.do_bist_mask:02X} (hex)\n",
        f"   NOS Register value:                         {s.nos_reg_value:02X} (hex)\n",
        f"   Post DRDY delay:                            {s.drdy_delay} (dec)\n",
        "   Device sampling mode:                       "
        f"{'CONTINUOUS' if s.sampling_mode else 'POLL'}\n",
        "   Cycle counts by vector:                     "
        f"X: {s.cc_x:3d} (dec), Y: {s.cc_y:3d} (dec), Z: {s.cc_z:3d} (dec)\n",
        "   Gain by vector:                             "
        f"X: {s.x_gain:3d} (dec), Y: {s.y_gain:3d} (dec), Z: {s.z_gain:3d} (dec)\n",
        f"   Read back CC Regs after set:                {_flag(s.read_back_cc_regs)}\n",
        f"   Software Loop Delay (uSec):                 {s.out_delay} (dec uSec)\n",
        f"   CMM sample rate:                            {s.cmm_sample_rate:2X} (hex)\n",
        f"   TMRC reg value:                             {s.tmrc_rate:2X} (hex)\n",
        f"   Format output as JSON:                      {_flag(s.json)}\n",
        f"   Read local temperature only:                {_flag(s.local_temp_only)}\n",
        f"   Read remote temperature only:               {_flag(s.remote_temp_only)}\n",
        f"   Read magnetometer only:                     {_flag(s.magnetometer_only)}\n",
        f"   Local temperature address:                  {s.local_temp_addr:02X} (hex)\n",
        f"   Remote temperature address:                 {s.remote_temp_addr:02X} (hex)\n",
        f"   Magnetometer address:                       {s.magnetometer_addr:02X} {{hex)\n",
        f"   Show parameters:                            {_flag(s.show_parameters)}\n",
        f"   Quiet mode:                                 {_flag(s.quiet)}\n",
        f"   Hide raw measurements:                      {_flag(s.hide_raw)}\n",
        f"   Return single magnetometer reading:         {_flag(s.single_read)}\n",
        "   Magnetometer configuation:                  "
        f"{'Local standalone' if s.board_mode == LOCAL else 'Extended with remote'}\n",
        "   Timestamp format:                           "
        f"{'RAW' if s.ts_milliseconds else 'UTCSTRING'}\n",
        f"   Verbose output:                             {_flag(s.verbose)}\n",
        f"   Show total field:                           {_flag(s.show_total)}\n",
        "\n\n",
    ]
    return "".join(lines)


def show_settings(settings: Settings) -> None:
    """Print the current settings."""
    print(format_settings(settings), end="")


def usage(prog: str) -> str:
    """Return the command line help text."""
    return (
        f"\n{prog} Version = {VERSION}\n"
        "\nParameters:\n\n"
        "   -a                     :  List known SBC I2C bus numbers.       [ use with -b ]\n"
        "   -A                     :  Set NOS (0x0A) register value.        "
        "[ Don't use unless you know what you are doing ]\n"
        "   -B <reg mask>          :  Do built in self test (BIST).         [ Not implemented ]\n"
        "   -b <bus as integer>    :  I2C bus number as integer.\n"
        "   -C                     :  Read back cycle count registers before sampling.\n"
        "   -c <count>             :  Set cycle counts as integer.          [ default 200 decimal]\n"
        "   -D <rate>              :  Set magnetometer sample rate.         "
        "[ TMRC reg 96 hex default ].\n"
        "   -E                     :  Show cycle count/gain/sensitivity relationship.\n"
        "   -f <filename>          :  Read configuration from file (JSON).  [ Not implemented ]\n"
        "   -F <filename>          :  Write configuration to file (JSON).   [ Not implemented ]\n"
        "   -g <mode>              :  Device sampling mode.                 "
        "[ POLL=0 (default), CONTINUOUS=1 ]\n"
        "   -H                     :  Hide raw measurments.\n"
        "   -j                     :  Format output as JSON.\n"
        "   -k                     :  Create and roll log files.            [ 00:00 UTC default ]\n"
        "   -L <addr as integer>   :  Local temperature address.            [ default 19 hex ]\n"
        "   -l                     :  Read local temperature only.\n"
        "   -M <addr as integer>   :  Magnetometer address.                 [ default 20 hex ]\n"
        "   -m                     :  Read magnetometer only.\n"
        "   -O <filename>          :  Output file path.                     "
        "[ Must be valid path with write permissions ]\n"
        "   -P                     :  Show Parameters.\n"
        "   -q                     :  Quiet mode.                           [ partial ]\n"
        "   -v                     :  Verbose output.\n"
        "   -R <addr as integer>   :  Remote temperature address.           [ default 18 hex ]\n"
        "   -r                     :  Read remote temperature only.\n"
        "   -s                     :  Return single reading.                "
        "[ Do one measurement loop only ]\n"
        "   -S                     :  Site prefix string for log files.     "
        "[ 32 char max. Do not use /'\"* etc. Try callsign! ]\n"
        "   -T                     :  Raw timestamp in milliseconds.        [ default: UTC string ]\n"
        "   -V                     :  Display software version and exit.\n"
        "   -Z                     :  Show total field.                     "
        "[ sqrt((x*x) + (y*y) + (z*z)) ]\n"
        "   -h or -?               :  Display this help.\n\n"
    )


def parse_command_line(argv: list[str] | None = None) -> Settings:
    """Build settings from command line arguments (program name excluded).

    Prints usage and raises HelpRequested for -h, -? or an unparsable command line;
    raises ValueError for invalid values; raises SystemExit(0) after -a, -E and -V.
    """
    if argv is None:
        argv = sys.argv[1:]
    prog = "runmag"
    settings = Settings()

    try:
        options, rest = getopt.gnu_getopt(list(argv), _SHORT_OPTIONS)
    except getopt.GetoptError as exc:
        print(f"{prog}: {exc.msg}", file=sys.stderr)
        print(usage(prog), end="")
        raise HelpRequested(exc.msg) from exc

    for option, arg in options:
        flag = option[1:]
        if flag == "a":
            print(format_sbc_list(), end="")
            raise SystemExit(0)
        elif flag == "A":
            nos = _atoi(arg)
            if nos <= 1:
                if settings.verbose:
                    print(
                        f"Error: {nos} :: NOS input value must be >= 1. Forcing -A input to 10 ",
                        file=sys.stderr,
                    )
                settings.nos_reg_value = 10
            else:
                settings.nos_reg_value = nos
            if settings.verbose:
                print(f"p->NOSRegValue:: {settings.nos_reg_value}", file=sys.stderr)
        elif flag == "b":
            settings.i2c_bus_number = _atoi(arg)
        elif flag == "B":
            settings.do_bist_mask = _atoi(arg)
        elif flag == "c":
            count = _atoi(arg)
            if count > CC_800 or count <= 0:
                raise ValueError("ERROR Invalid: cycle count > 800 (dec) or cycle count  <= 0.")
            settings.cc_x = settings.cc_y = settings.cc_z = count
            gain = cc_gain_equiv(count)
            settings.x_gain = settings.y_gain = settings.z_gain = gain
        elif flag == "C":
            settings.read_back_cc_regs = True
        elif flag == "D":
            settings.cmm_sample_rate = _atoi(arg)
        elif flag == "E":
            print(format_count_gain_relationship(), end="")
            raise SystemExit(0)
        elif flag in ("f", "F"):
            pass  # configuration files are not supported
        elif flag == "g":
            settings.sampling_mode = _atoi(arg)
        elif flag == "H":
            settings.hide_raw = True
        elif flag == "j":
            settings.json = True
        elif flag == "k":
            settings.log_output = True
            settings.build_log_file = True
        elif flag == "l":
            settings.local_temp_only = True
        elif flag == "L":
            settings.local_temp_addr = _scan_hex(arg)
        elif flag == "m":
            settings.magnetometer_only = True
        elif flag == "M":
            settings.magnetometer_addr = _scan_hex(arg)
        elif flag == "O":
            if len(arg) >= MAXPATHBUFLEN:
                raise ValueError(f"Output path must be less than {MAXPATHBUFLEN} characters.")
            settings.set_output_file_path(arg)
            settings.build_log_file = True
        elif flag == "P":
            settings.show_parameters = True
        elif flag == "q":
            settings.quiet = True
            settings.verbose = False
        elif flag == "r":
            settings.remote_temp_only = True
        elif flag == "R":
            settings.remote_temp_addr = _scan_hex(arg)
        elif flag == "s":
            settings.single_read = True
        elif flag == "S":
            if len(arg) >= SITEPREFIXLEN:
                raise ValueError(f"Site Prefix must be less than {SITEPREFIXLEN}")
            settings.site_prefix = arg
            settings.build_log_file = True
        elif flag == "T":
            settings.ts_milliseconds = True
        elif flag == "t":
            settings.tmrc_rate = _atoi(arg)
        elif flag == "V":
            print(f"\nVersion: {settings.version}")
            raise SystemExit(0)
        elif flag == "v":
            settings.verbose = True
            settings.quiet = False
        elif flag == "Z":
            settings.show_total = True
        elif flag in ("h", "?"):
            print(usage(prog), end="")
            raise HelpRequested("help requested")

    if rest:
        print("non-option ARGV-elements: " + "".join(f"{item} " for item in rest))

    return settings