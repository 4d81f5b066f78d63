"""Reading and writing HAT EEPROMs over a Linux I2C character device."""

from __future__ import annotations

import time

try:
    import fcntl
except ImportError:  # pragma: no cover - non-POSIX platforms
    fcntl = None  # type: ignore[assignment]

from hatrom.atoms import SIGNATURE, EepromHeader
from hatrom.eeprom import Eeprom
from hatrom.errors import I2cError, InvalidCrcError, InvalidDataError

__all__ = [
    "I2C_SLAVE",
    "HAT_EEPROM_ADDR",
    "DEFAULT_I2C_DEVICE",
    "WRITE_PAGE_SIZE",
    "READ_CHUNK_SIZE",
    "WRITE_DELAY",
    "I2cDevice",
    "validate_image",
    "write_to_eeprom_i2c",
    "read_from_eeprom_i2c",
]

I2C_SLAVE = 0x0703
HAT_EEPROM_ADDR = 0x50
DEFAULT_I2C_DEVICE = "/dev/i2c-0"
WRITE_PAGE_SIZE = 16
READ_CHUNK_SIZE = 32
WRITE_DELAY = 0.01


def _offset_bytes(offset: int) -> bytes:
    return bytes(((offset >> 8) & 0xFF, offset & 0xFF))


class I2cDevice:
    """An open I2C bus device bound to one slave address.

    Usable as a context manager; every failure is raised as :class:`I2cError`.
    """

    def __init__(self, dev_path: str, addr: int) -> None:
        if fcntl is None:
            raise I2cError("I2C is not supported on this platform")
        try:
            self._file = open(dev_path, "r+b", buffering=0)
        except OSError as exc:
            raise I2cError() from exc
        try:
            fcntl.ioctl(self._file.fileno(), I2C_SLAVE, addr)
        except OSError as exc:
            self._file.close()
            raise I2cError() from exc
        self.dev_path = dev_path
        self.addr = addr

    def write(self, data: bytes | bytearray | memoryview) -> None:
        """Send ``data`` to the slave in one transfer."""
        payload = bytes(data)
        try:
            written = self._file.write(payload)
        except OSError as exc:
            raise I2cError() from exc
        if written != len(payload):
            raise I2cError()

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes from the slave."""
        try:
            data = self._file.read(size)
        except OSError as exc:
            raise I2cError() from exc
        if data is None or len(data) != size:
            raise I2cError()
        return bytes(data)

    def close(self) -> None:
        """Release the device."""
        self._file.close()

    def __enter__(self) -> I2cDevice:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"I2cDevice({self.dev_path!r}, 0x{self.addr:02X})"


def validate_image(data: bytes | bytearray | memoryview) -> EepromHeader:
    """Check that ``data`` is a plausible EEPROM image and return its header.

    Raises :class:`InvalidDataError` for a malformed header and
    :class:`InvalidCrcError` when an image of 16 bytes or more does not end
    with a matching CRC-32.
    """
    raw = bytes(data)
    if len(raw) < EepromHeader.SIZE:
        raise InvalidDataError()
    if raw[:4] != SIGNATURE:
        raise InvalidDataError()
    header = EepromHeader.from_bytes(raw)
    if header.version == 0:
        raise InvalidDataError()
    if header.numatoms == 0:
        raise InvalidDataError()
    if header.eeplen > len(raw):
        raise InvalidDataError()
    if header.eeplen < EepromHeader.SIZE:
        raise InvalidDataError()
    if len(raw) >= 16 and not Eeprom.verify_crc(raw):
        raise InvalidCrcError()
    return header


def write_to_eeprom_i2c(data: bytes | bytearray | memoryview, dev_path: str, addr: int) -> None:
    """Validate ``data`` and write it page by page to the EEPROM at ``addr``."""
    raw = bytes(data)
    validate_image(raw)
    with I2cDevice(dev_path, addr) as device:
        for start in range(0, len(raw), WRITE_PAGE_SIZE):
            page = raw[start : start + WRITE_PAGE_SIZE]
            device.write(_offset_bytes(start) + page)
            time.sleep(WRITE_DELAY)


def read_from_eeprom_i2c(size: int, dev_path: str, addr: int, offset: int = 0) -> bytes:
    """Read ``size`` bytes from the EEPROM at ``addr``, starting at ``offset``."""
    chunks: list[bytes] = []
    with I2cDevice(dev_path, addr) as device:
        total = 0
        while total < size:
            chunk_size = min(READ_CHUNK_SIZE, size - total)
            device.write(_offset_bytes(offset + total))
            chunks.append(device.read(chunk_size))
            total += chunk_size
    return b"".join(chunks)