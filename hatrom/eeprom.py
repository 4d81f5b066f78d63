"""The complete HAT EEPROM image: parsing, editing and serialisation."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

from hatrom.atoms import (
    SIGNATURE,
    AtomHeader,
    AtomType,
    CustomAtom,
    EepromHeader,
    GpioMapAtom,
    VendorInfoAtom,
)
from hatrom.crc32 import crc32
from hatrom.errors import BufferTooSmallError, InvalidCrcError, InvalidDataError

__all__ = ["Eeprom", "CRC_SIZE"]

CRC_SIZE = 4
_CRC_STRUCT = struct.Struct("<I")


def _hex_list(data: bytes) -> str:
    return "[" + ", ".join(f"{b:02X}" for b in data) + "]"


@dataclass
class Eeprom:
    """A HAT EEPROM image made of a header and its atoms.

    Vendor info and GPIO bank 0 are always present; the device tree blob,
    GPIO bank 1 and custom atoms are optional.
    """

    header: EepromHeader = field(default_factory=EepromHeader)
    vendor_info: VendorInfoAtom = field(default_factory=VendorInfoAtom)
    gpio_map_bank0: GpioMapAtom = field(default_factory=GpioMapAtom)
    dt_blob: bytes | None = None
    gpio_map_bank1: GpioMapAtom | None = None
    custom_atoms: list[tuple[int, bytes]] = field(default_factory=list)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> Eeprom:
        """Parse an image (without a trailing CRC requirement).

        Raises :class:`InvalidDataError` when the data is truncated, the
        signature is wrong or a mandatory atom is missing.
        """
        raw = bytes(data)
        header = EepromHeader.from_bytes(raw)
        if header.signature != SIGNATURE:
            raise InvalidDataError("Invalid EEPROM signature")

        offset = EepromHeader.SIZE
        vendor_info: VendorInfoAtom | None = None
        gpio_map_bank0: GpioMapAtom | None = None
        dt_blob: bytes | None = None
        gpio_map_bank1: GpioMapAtom | None = None
        custom_atoms: list[tuple[int, bytes]] = []

        for _ in range(header.numatoms):
            if len(raw) < offset + AtomHeader.SIZE:
                raise InvalidDataError("Not enough data for AtomHeader")
            atom_header = AtomHeader.from_bytes(raw[offset:])
            offset += AtomHeader.SIZE
            dlen = atom_header.dlen
            if len(raw) < offset + dlen:
                raise InvalidDataError("Not enough data for atom")
            body = raw[offset : offset + dlen]

            kind = AtomType.from_byte(atom_header.atom_type)
            if kind is AtomType.VENDOR_INFO:
                if dlen >= VendorInfoAtom.SIZE:
                    vendor_info = VendorInfoAtom.from_bytes(body)
            elif kind is AtomType.GPIO_MAP_BANK0:
                if dlen >= GpioMapAtom.SIZE:
                    gpio_map_bank0 = GpioMapAtom.from_bytes(body)
            elif kind is AtomType.DT_BLOB:
                if dlen > 0:
                    dt_blob = body
            elif kind is AtomType.GPIO_MAP_BANK1:
                if dlen >= GpioMapAtom.SIZE:
                    gpio_map_bank1 = GpioMapAtom.from_bytes(body)
            elif dlen > 0:
                custom_atoms.append((atom_header.atom_type, body))
            offset += dlen

        if vendor_info is None:
            raise InvalidDataError("VendorInfo atom not found")
        if gpio_map_bank0 is None:
            raise InvalidDataError("GpioMapBank0 atom not found")
        return cls(header, vendor_info, gpio_map_bank0, dt_blob, gpio_map_bank1, custom_atoms)

    def is_valid(self) -> bool:
        """True when the signature is correct and the version is non-zero."""
        return self.header.signature == SIGNATURE and self.header.version != 0

    def add_vendor_info(self, atom: VendorInfoAtom) -> None:
        self.vendor_info = atom
        self.update_header()

    def add_gpio_map_bank0(self, atom: GpioMapAtom) -> None:
        self.gpio_map_bank0 = atom
        self.update_header()

    def add_dt_blob(self, blob: bytes | bytearray | memoryview) -> None:
        self.dt_blob = bytes(blob)
        self.update_header()

    def add_gpio_map_bank1(self, atom: GpioMapAtom) -> None:
        self.gpio_map_bank1 = atom
        self.update_header()

    def add_custom_atom(self, atom_type: int, data: bytes | bytearray | memoryview) -> None:
        atom = CustomAtom(atom_type, bytes(data))
        self.custom_atoms.append((atom.atom_type, atom.data))
        self.update_header()

    def _atom_count(self) -> int:
        count = 2
        if self.dt_blob is not None:
            count += 1
        if self.gpio_map_bank1 is not None:
            count += 1
        return count + len(self.custom_atoms)

    def update_header(self) -> None:
        """Recalculate ``numatoms`` and ``eeplen`` from the current atoms."""
        self.header.numatoms = self._atom_count()
        self.header.eeplen = self.calculate_serialized_size()

    def calculate_serialized_size(self) -> int:
        """Size in bytes of :meth:`serialize` output (no CRC)."""
        size = EepromHeader.SIZE + AtomHeader.SIZE * 2 + VendorInfoAtom.SIZE + GpioMapAtom.SIZE
        if self.dt_blob is not None:
            size += AtomHeader.SIZE + len(self.dt_blob)
        if self.gpio_map_bank1 is not None:
            size += AtomHeader.SIZE + GpioMapAtom.SIZE
        size += sum(AtomHeader.SIZE + len(data) for _, data in self.custom_atoms)
        return size

    def _chunks(self) -> Iterator[bytes]:
        yield self.header.to_bytes()
        yield AtomHeader(AtomType.VENDOR_INFO, 1, VendorInfoAtom.SIZE).to_bytes()
        yield self.vendor_info.to_bytes()
        yield AtomHeader(AtomType.GPIO_MAP_BANK0, 1, GpioMapAtom.SIZE).to_bytes()
        yield self.gpio_map_bank0.to_bytes()
        if self.dt_blob is not None:
            yield AtomHeader(AtomType.DT_BLOB, 1, len(self.dt_blob)).to_bytes()
            yield bytes(self.dt_blob)
        if self.gpio_map_bank1 is not None:
            yield AtomHeader(AtomType.GPIO_MAP_BANK1, 1, GpioMapAtom.SIZE).to_bytes()
            yield self.gpio_map_bank1.to_bytes()
        for atom_type, data in self.custom_atoms:
            yield AtomHeader(atom_type, 1, len(data)).to_bytes()
            yield bytes(data)

    def serialize(self) -> bytes:
        """Return the image bytes without a CRC."""
        return b"".join(self._chunks())

    def serialize_with_crc(self) -> bytes:
        """Return the image bytes followed by their CRC-32, little endian."""
        data = self.serialize()
        return data + _CRC_STRUCT.pack(crc32(data))

    def serialize_into(self, buffer: bytearray | memoryview, offset: int = 0) -> int:
        """Write the image into ``buffer`` at ``offset`` and return the new offset.

        Raises :class:`BufferTooSmallError` when a part does not fit.
        """
        view = memoryview(buffer)
        for chunk in self._chunks():
            end = offset + len(chunk)
            if end > len(view):
                raise BufferTooSmallError()
            view[offset:end] = chunk
            offset = end
        return offset

    def set_version(self, version: int) -> None:
        self.header.version = version

    @staticmethod
    def verify_crc(data: bytes | bytearray | memoryview) -> bool:
        """True when the last four bytes are the CRC-32 (LE) of the rest."""
        raw = bytes(data)
        if len(raw) < CRC_SIZE:
            return False
        content, crc_bytes = raw[:-CRC_SIZE], raw[-CRC_SIZE:]
        return crc_bytes == _CRC_STRUCT.pack(crc32(content))

    @staticmethod
    def verify_crc_with_details(data: bytes | bytearray | memoryview) -> None:
        """Check the trailing CRC-32, raising on failure.

        Raises :class:`InvalidDataError` for data shorter than four bytes and
        :class:`InvalidCrcError` for a mismatch.
        """
        raw = bytes(data)
        if len(raw) < CRC_SIZE:
            raise InvalidDataError()
        if not Eeprom.verify_crc(raw):
            raise InvalidCrcError()

    def __str__(self) -> str:
        lines = [
            f"EEPROM Header:\n{self.header}",
            f"\nVendor Info:\n{self.vendor_info}",
            f"\nGPIO Map Bank0:\n{self.gpio_map_bank0}",
        ]
        if self.dt_blob is not None:
            lines.append(f"\nDT Blob: {len(self.dt_blob)} bytes")
        if self.gpio_map_bank1 is not None:
            lines.append(f"\nGPIO Map Bank1:\n{self.gpio_map_bank1}")
        if self.custom_atoms:
            lines.append("\nCustom Atoms:")
            lines.extend(
                f"  type: 0x{atom_type:02X}, data: {_hex_list(data)}"
                for atom_type, data in self.custom_atoms
            )
        return "".join(line + "\n" for line in lines)