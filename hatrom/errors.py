"""Exceptions raised by HAT EEPROM operations."""

from __future__ import annotations

__all__ = [
    "HatError",
    "I2cError",
    "InvalidDataError",
    "InvalidCrcError",
    "BufferTooSmallError",
    "DeviceNotFoundError",
    "DeviceTimeoutError",
]


class HatError(Exception):
    """Base class for every error raised by this package."""

    default_message = "HAT EEPROM error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message

    def __str__(self) -> str:
        return self.message


class I2cError(HatError, OSError):
    """I2C communication failed."""

    default_message = "I2C communication error"


class InvalidDataError(HatError, ValueError):
    """EEPROM data is invalid or corrupted."""

    default_message = "Invalid or corrupted EEPROM data"


class InvalidCrcError(HatError, ValueError):
    """The CRC-32 checksum does not match the data."""

    default_message = "Invalid CRC32 checksum"


class BufferTooSmallError(HatError, ValueError):
    """A buffer is too small to hold the result."""

    default_message = "Buffer too small for operation"


class DeviceNotFoundError(HatError, LookupError):
    """The requested device does not exist."""

    default_message = "Device not found"


class DeviceTimeoutError(HatError, TimeoutError):
    """An operation on the device timed out."""

    default_message = "Timeout during operation"