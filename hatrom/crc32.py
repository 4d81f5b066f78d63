"""CRC-32 (IEEE 802.3, reflected polynomial 0xEDB88320) checksums."""

from __future__ import annotations

import zlib

__all__ = ["Hasher", "crc32"]


class Hasher:
    """Incremental CRC-32 calculator.

    Feed data with :meth:`update` as many times as needed, then read the
    checksum with :meth:`finalize`.
    """

    __slots__ = ("_crc",)

    def __init__(self) -> None:
        self._crc = 0

    def update(self, data: bytes | bytearray | memoryview) -> None:
        """Add ``data`` to the running checksum."""
        self._crc = zlib.crc32(data, self._crc)

    def finalize(self) -> int:
        """Return the CRC-32 of everything fed so far as an unsigned 32-bit int."""
        return self._crc & 0xFFFFFFFF

    def __repr__(self) -> str:
        return f"Hasher(crc=0x{self.finalize():08X})"


def crc32(data: bytes | bytearray | memoryview) -> int:
    """Return the CRC-32 of ``data``."""
    hasher = Hasher()
    hasher.update(data)
    return hasher.finalize()