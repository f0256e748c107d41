# runmag

`runmag` reads a PNI RM3100 3-axis magnetometer and, optionally, one or two
MCP9808 temperature sensors attached to a Linux I2C bus. It writes one CSV or
JSON line per reading, about once a second, either to standard output or to
daily log files.

## Installation

```
pip install .
```

The program opens `/dev/i2c-<bus>`, so the user running it needs read and
write access to that device.

## Usage

```
runmag [options]
```

| Option | Meaning |
|--------|---------|
| `-a` | List known single board computers and their I2C bus numbers, then exit |
| `-A <n>` | NOS register value (default 60; values of 1 or less become 10) |
| `-b <bus>` | I2C bus number (default 1) |
| `-B <mask>` | Store a self-test mask (shown with `-P`; no self test is run) |
| `-c <count>` | Cycle count for all axes, 1 to 800 (default 400); also sets the gains |
| `-C` | Read back and print the cycle count registers before sampling |
| `-D <rate>` | Store the continuous measurement sample rate (default 400) |
| `-E` | Show the cycle count / gain / sensitivity table, then exit |
| `-g <mode>` | Sampling mode: 0 = POLL (default), 1 = CONTINUOUS |
| `-H` | Hide raw measurements |
| `-j` | Write JSON lines instead of CSV |
| `-k` | Write to log files that start a new file when the UTC day changes |
| `-O <dir>` | Directory for the log files (default `./logs/`); implies log files |
| `-S <prefix>` | Site prefix for log file names (under 32 characters); implies log files |
| `-l` / `-r` / `-m` | Read the local temperature, remote temperature or magnetometer only |
| `-L` / `-R` / `-M <hex>` | Local (default 18), remote (default 19) and magnetometer (default 20) addresses |
| `-t <value>` | Store a TMRC register value (default 0x96) |
| `-P` | Show the current parameters before sampling |
| `-s` | Take a single reading and exit |
| `-T` | Timestamp in milliseconds instead of a UTC string |
| `-Z` | Add the total field strength |
| `-v` / `-q` | Verbose or quiet output |
| `-V` | Print the version and exit |
| `-h` / `-?` | Show help |

Log files are named `<dir>/<prefix>-YYYYMMDD-runmag.log`, using the current
UTC date; with no `-S` the prefix is empty.

Field values are printed in microtesla with four decimals, temperatures in
degrees Celsius with two decimals. A temperature sensor that cannot be read is
shown as `"ERROR"` in CSV and as `0.0` in JSON.

The exit status is 0 after a normal run, 1 for help, an invalid option value,
an I/O error or a magnetometer with an unexpected revision id, and 130 when
interrupted.

Example: one JSON reading from bus 3 with the total field:

```
runmag -b 3 -j -Z -s
```

## As a library

```python
from runmag.magnetometer import cc_gain_equiv
from runmag.settings import parse_command_line

settings = parse_command_line(["-c", "200", "-j"])
print(cc_gain_equiv(200))  # 74
```

- `runmag.i2c.I2CBus` is a context manager over `/dev/i2c-<n>` with register
  reads and writes; failures raise `runmag.i2c.I2CError`.
- `runmag.magnetometer` sets up the RM3100 (`setup_mag`, `set_cycle_count_regs`,
  `start_cmm`, `read_cycle_count_regs`) and raises `MagnetometerError` when the
  revision id is wrong.
- `runmag.main` has `decode_mag_sample`, `decode_temperature`, `csv_header`,
  `format_csv` and `format_json`, which turn raw register bytes and a `Reading`
  into output lines.
- `runmag.settings.Settings` holds every run option; `format_settings` renders
  them as shown by `-P`.

## What it does not do

- The `-f` and `-F` options are accepted but ignored: settings cannot be read
  from or saved to a file.
- No built-in self test is run (`run_bist` always returns 0).
- The `-D` and `-t` values are stored and shown but not written to the device.

## Tests

```
pip install .[test]
pytest
```