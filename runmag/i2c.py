"""Register-level access to a Linux I2C character device."""

from __future__ import annotations

import fcntl
import os

I2C_SLAVE = 0x0703


class I2CError(OSError):
    """An I2C transfer or bus operation failed."""


class I2CBus:
    """An open I2C bus device addressed by register."""

    def __init__(self, fd: int):
        self.fd = fd

    @classmethod
    def open(cls, bus_number: int) -> I2CBus:
        """Open /dev/i2c-<bus_number> for reading and writing."""
        path = f"/dev/i2c-{bus_number}"
        try:
            fd = os.open(path, os.O_RDWR)
        except OSError as exc:
            raise I2CError(exc.errno, f"Bus open failed: {path}") from exc
        return cls(fd)

    def set_address(self, address: int) -> None:
        """Select the slave address for subsequent transfers."""
        try:
            fcntl.ioctl(self.fd, I2C_SLAVE, address)
        except OSError as exc:
            raise I2CError(exc.errno, f"i2c set address 0x{address:02X} failed") from exc

    def _write_bytes(self, data: bytes, what: str) -> int:
        try:
            written = os.write(self.fd, data)
        except OSError as exc:
            raise I2CError(exc.errno, f"{what} failed") from exc
        if written != len(data):
            raise I2CError(f"{what}: short write ({written} of {len(data)} bytes)")
        return written

    def _read_bytes(self, length: int, what: str) -> bytes:
        try:
            data = os.read(self.fd, length)
        except OSError as exc:
            raise I2CError(exc.errno, f"{what} failed") from exc
        if len(data) != length:
            raise I2CError(f"{what}: short read ({len(data)} of {length} bytes)")
        return data

    def write(self, reg: int, value: int) -> None:
        """Write an 8 bit value to a device register."""
        self._write_bytes(bytes((reg & 0xFF, value & 0xFF)), "i2c write")

    def read(self, reg: int) -> int:
        """Read an 8 bit value from a device register."""
        self._write_bytes(bytes((reg & 0xFF,)), "i2c read register select")
        return self._read_bytes(1, "i2c read")[0]

    def write_buf(self, reg: int, data: bytes) -> int:
        """Write a block of bytes starting at a register; return the data length written."""
        payload = bytes((reg & 0xFF,)) + bytes(data)
        self._write_bytes(payload, "i2c write buffer")
        return len(data)

    def read_buf(self, reg: int, length: int) -> bytes:
        """Read a block of bytes starting at a register."""
        self._write_bytes(bytes((reg & 0xFF,)), "i2c read buffer register select")
        return self._read_bytes(length, "i2c read buffer")

    def close(self) -> None:
        """Close the bus device."""
        if self.fd >= 0:
            os.close(self.fd)
            self.fd = -1

    def __enter__(self) -> I2CBus:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()