"""Binary layouts of the HAT EEPROM header and its atoms.

Every structure is little endian and packed, exactly as stored in the
EEPROM image.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import ClassVar

from hatrom.errors import InvalidDataError

__all__ = [
    "SIGNATURE",
    "AtomType",
    "EepromHeader",
    "AtomHeader",
    "VendorInfoAtom",
    "GpioMapAtom",
    "DtBlobAtom",
    "CustomAtom",
]

SIGNATURE = b"R-Pi"

_NAME_FIELD_LEN = 16
_UUID_LEN = 16
_GPIO_PINS = 28


def _check_uint(name: str, value: int, bits: int) -> int:
    limit = 1 << bits
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value < limit:
        raise InvalidDataError(f"{name} must be an integer in range 0..{limit - 1}, got {value!r}")
    return value


def _check_bytes(name: str, value: bytes | bytearray | memoryview, length: int) -> bytes:
    data = bytes(value)
    if len(data) != length:
        raise InvalidDataError(f"{name} must be exactly {length} bytes, got {len(data)}")
    return data


def _require(data: bytes | bytearray | memoryview, size: int, what: str) -> bytes:
    raw = bytes(data)
    if len(raw) < size:
        raise InvalidDataError(f"Not enough data for {what}")
    return raw[:size]


def _hex_list(data: bytes) -> str:
    return "[" + ", ".join(f"{b:02X}" for b in data) + "]"


def _dec_list(data: bytes) -> str:
    return "[" + ", ".join(str(b) for b in data) + "]"


def _padded_name(text: str) -> bytes:
    # One byte is always kept free for the NUL terminator.
    encoded = text.encode("utf-8")[: _NAME_FIELD_LEN - 1]
    return encoded.ljust(_NAME_FIELD_LEN, b"\0")


def _decode_name(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\0")


class AtomType(enum.IntEnum):
    """Known atom type identifiers."""

    VENDOR_INFO = 0x01
    GPIO_MAP_BANK0 = 0x02
    DT_BLOB = 0x03
    GPIO_MAP_BANK1 = 0x04
    UNKNOWN = 0x05

    @classmethod
    def from_byte(cls, value: int) -> AtomType:
        """Map a raw type byte to a known type, or ``UNKNOWN``."""
        if value in (cls.VENDOR_INFO, cls.GPIO_MAP_BANK0, cls.DT_BLOB, cls.GPIO_MAP_BANK1):
            return cls(value)
        return cls.UNKNOWN


@dataclass
class EepromHeader:
    """The 12-byte header at the start of every HAT EEPROM image."""

    signature: bytes = SIGNATURE
    version: int = 1
    reserved: int = 0
    numatoms: int = 0
    eeplen: int = 0

    SIZE: ClassVar[int] = 12
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<4sBBHI")

    def __post_init__(self) -> None:
        self.signature = _check_bytes("signature", self.signature, 4)
        _check_uint("version", self.version, 8)
        _check_uint("reserved", self.reserved, 8)
        _check_uint("numatoms", self.numatoms, 16)
        _check_uint("eeplen", self.eeplen, 32)

    def to_bytes(self) -> bytes:
        """Return the packed wire form."""
        return self._STRUCT.pack(
            bytes(self.signature), self.version, self.reserved, self.numatoms, self.eeplen
        )

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> EepromHeader:
        """Read a header from the start of ``data``; the signature is not checked."""
        raw = _require(data, cls.SIZE, "EEPROM header")
        signature, version, reserved, numatoms, eeplen = cls._STRUCT.unpack(raw)
        return cls(signature, version, reserved, numatoms, eeplen)

    def __str__(self) -> str:
        return (
            f"signature: {_dec_list(bytes(self.signature))}\n"
            f"version: {self.version}\n"
            f"reserved: {self.reserved}\n"
            f"numatoms: {self.numatoms}\n"
            f"eeplen: {self.eeplen}"
        )


@dataclass
class AtomHeader:
    """The 8-byte header that precedes each atom's data."""

    atom_type: int
    count: int = 1
    dlen: int = 0
    reserved: int = 0

    SIZE: ClassVar[int] = 8
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<BBHI")

    def __post_init__(self) -> None:
        _check_uint("atom_type", self.atom_type, 8)
        _check_uint("count", self.count, 8)
        _check_uint("dlen", self.dlen, 16)
        _check_uint("reserved", self.reserved, 32)

    def to_bytes(self) -> bytes:
        """Return the packed wire form."""
        return self._STRUCT.pack(int(self.atom_type), self.count, self.dlen, self.reserved)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> AtomHeader:
        """Read an atom header from the start of ``data``."""
        raw = _require(data, cls.SIZE, "AtomHeader")
        atom_type, count, dlen, reserved = cls._STRUCT.unpack(raw)
        return cls(atom_type, count, dlen, reserved)

    def __str__(self) -> str:
        return (
            f"atom_type: 0x{self.atom_type:02X}\n"
            f"count: {self.count}\n"
            f"dlen: {self.dlen}\n"
            f"reserved: {self.reserved}"
        )


@dataclass
class VendorInfoAtom:
    """Vendor and product identification (54 bytes)."""

    vendor_id: int = 0
    product_id: int = 0
    product_ver: int = 0
    vendor: bytes = field(default=bytes(_NAME_FIELD_LEN))
    product: bytes = field(default=bytes(_NAME_FIELD_LEN))
    uuid: bytes = field(default=bytes(_UUID_LEN))

    SIZE: ClassVar[int] = 54
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<HHH16s16s16s")

    def __post_init__(self) -> None:
        _check_uint("vendor_id", self.vendor_id, 16)
        _check_uint("product_id", self.product_id, 16)
        _check_uint("product_ver", self.product_ver, 16)
        self.vendor = _check_bytes("vendor", self.vendor, _NAME_FIELD_LEN)
        self.product = _check_bytes("product", self.product, _NAME_FIELD_LEN)
        self.uuid = _check_bytes("uuid", self.uuid, _UUID_LEN)

    @classmethod
    def from_strings(
        cls,
        vendor_id: int,
        product_id: int,
        product_ver: int,
        vendor: str,
        product: str,
        uuid: bytes | bytearray | memoryview,
    ) -> VendorInfoAtom:
        """Build an atom from names, cutting them to 15 bytes and zero padding."""
        return cls(
            vendor_id,
            product_id,
            product_ver,
            _padded_name(vendor),
            _padded_name(product),
            bytes(uuid),
        )

    def to_bytes(self) -> bytes:
        """Return the packed wire form."""
        return self._STRUCT.pack(
            self.vendor_id,
            self.product_id,
            self.product_ver,
            bytes(self.vendor),
            bytes(self.product),
            bytes(self.uuid),
        )

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> VendorInfoAtom:
        """Read a vendor info atom from the start of ``data``."""
        raw = _require(data, cls.SIZE, "VendorInfo atom")
        return cls(*cls._STRUCT.unpack(raw))

    def vendor_name(self) -> str:
        """The vendor name with trailing NULs removed."""
        return _decode_name(bytes(self.vendor))

    def product_name(self) -> str:
        """The product name with trailing NULs removed."""
        return _decode_name(bytes(self.product))

    def __str__(self) -> str:
        return (
            f"vendor_id: 0x{self.vendor_id:04X}\n"
            f"product_id: 0x{self.product_id:04X}\n"
            f"product_ver: {self.product_ver}\n"
            f"vendor: {self.vendor_name()}\n"
            f"product: {self.product_name()}\n"
            f"uuid: {_hex_list(bytes(self.uuid))}"
        )

    def __repr__(self) -> str:
        return (
            f"VendorInfoAtom {{ vendor_id: {self.vendor_id}, product_id: {self.product_id}, "
            f'product_ver: {self.product_ver}, vendor: "{self.vendor_name()}", '
            f'product: "{self.product_name()}", uuid: {_dec_list(bytes(self.uuid))} }}'
        )


@dataclass
class GpioMapAtom:
    """GPIO usage map for one bank: flags plus one byte per pin (30 bytes)."""

    flags: int = 0
    pins: bytes = field(default=bytes(_GPIO_PINS))

    SIZE: ClassVar[int] = 30
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<H28s")

    def __post_init__(self) -> None:
        _check_uint("flags", self.flags, 16)
        self.pins = _check_bytes("pins", self.pins, _GPIO_PINS)

    def to_bytes(self) -> bytes:
        """Return the packed wire form."""
        return self._STRUCT.pack(self.flags, bytes(self.pins))

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> GpioMapAtom:
        """Read a GPIO map atom from the start of ``data``."""
        raw = _require(data, cls.SIZE, "GPIO map atom")
        flags, pins = cls._STRUCT.unpack(raw)
        return cls(flags, pins)

    def __str__(self) -> str:
        return f"flags: 0x{self.flags:04X}\npins: {_dec_list(bytes(self.pins))}"


@dataclass
class DtBlobAtom:
    """Description of a device tree blob atom by its length."""

    dlen: int = 0

    def __post_init__(self) -> None:
        _check_uint("dlen", self.dlen, 32)

    def __str__(self) -> str:
        return f"dlen: {self.dlen} (blob data not shown)"


@dataclass
class CustomAtom:
    """An application-specific atom: a type byte and raw data."""

    atom_type: int
    data: bytes = b""

    def __post_init__(self) -> None:
        _check_uint("atom_type", self.atom_type, 8)
        self.data = bytes(self.data)

    def __str__(self) -> str:
        return f"atom_type: 0x{self.atom_type:02X}\ndata: {_hex_list(self.data)}"

    def __repr__(self) -> str:
        return f"CustomAtom {{ atom_type: 0x{self.atom_type:02X}, data: {_dec_list(self.data)} }}"