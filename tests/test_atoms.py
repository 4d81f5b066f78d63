import pytest

from hatrom.atoms import (
    SIGNATURE,
    AtomHeader,
    AtomType,
    CustomAtom,
    DtBlobAtom,
    EepromHeader,
    GpioMapAtom,
    VendorInfoAtom,
)
from hatrom.errors import InvalidDataError

UUID = bytes([0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC, 0xDE, 0xF0] * 2)


@pytest.mark.parametrize(
    "value, expected",
    [
        (0x01, AtomType.VENDOR_INFO),
        (0x02, AtomType.GPIO_MAP_BANK0),
        (0x03, AtomType.DT_BLOB),
        (0x04, AtomType.GPIO_MAP_BANK1),
        (0x00, AtomType.UNKNOWN),
        (0x80, AtomType.UNKNOWN),
        (0xFF, AtomType.UNKNOWN),
    ],
)
def test_atom_type_from_byte(value, expected):
    assert AtomType.from_byte(value) is expected


def test_default_header_values():
    header = EepromHeader()
    assert header.signature == SIGNATURE
    assert header.version == 1
    assert header.reserved == 0
    assert header.numatoms == 0


def test_header_wire_bytes():
    header = EepromHeader(eeplen=0x10)
    assert header.to_bytes() == b"R-Pi\x01\x00\x00\x00\x10\x00\x00\x00"


def test_header_round_trip():
    header = EepromHeader(version=3, numatoms=7, eeplen=1234)
    raw = header.to_bytes()
    assert len(raw) == EepromHeader.SIZE
    assert EepromHeader.from_bytes(raw + b"trailing") == header


def test_header_too_short():
    with pytest.raises(InvalidDataError):
        EepromHeader.from_bytes(b"R-Pi")


def test_header_rejects_out_of_range():
    with pytest.raises(InvalidDataError):
        EepromHeader(numatoms=1 << 16)


def test_header_str_lists_fields():
    text = str(EepromHeader(numatoms=2, eeplen=112))
    lines = text.splitlines()
    assert lines[0] == "signature: [82, 45, 80, 105]"
    assert "numatoms: 2" in lines
    assert "eeplen: 112" in lines


def test_atom_header_round_trip():
    header = AtomHeader(atom_type=AtomType.DT_BLOB, count=1, dlen=300)
    raw = header.to_bytes()
    assert len(raw) == AtomHeader.SIZE
    parsed = AtomHeader.from_bytes(raw)
    assert parsed == header
    assert AtomType.from_byte(parsed.atom_type) is AtomType.DT_BLOB


def test_atom_header_too_short():
    with pytest.raises(InvalidDataError):
        AtomHeader.from_bytes(bytes(AtomHeader.SIZE - 1))


def test_atom_header_dlen_overflow():
    with pytest.raises(InvalidDataError):
        AtomHeader(atom_type=0x80, dlen=70000)


def test_vendor_from_strings_pads_with_nul():
    atom = VendorInfoAtom.from_strings(0x0001, 0x0002, 0x0001, "Acme Corp", "Test HAT", UUID)
    assert atom.vendor == b"Acme Corp".ljust(16, b"\0")
    assert atom.product == b"Test HAT".ljust(16, b"\0")
    assert atom.vendor_name() == "Acme Corp"
    assert atom.product_name() == "Test HAT"


def test_vendor_from_strings_truncates_to_fifteen_bytes():
    name = "ACME Custom HATs"
    atom = VendorInfoAtom.from_strings(1, 1, 1, name, name * 2, UUID)
    assert atom.vendor_name() == name[:15]
    assert atom.product_name() == (name * 2)[:15]
    assert atom.vendor[-1] == 0
    assert atom.product[-1] == 0


def test_vendor_round_trip():
    atom = VendorInfoAtom.from_strings(0x4D4F, 0x1234, 1, "TestVendor", "TestProduct", UUID)
    raw = atom.to_bytes()
    assert len(raw) == VendorInfoAtom.SIZE
    assert raw[6:22] == atom.vendor
    assert raw[-16:] == UUID
    assert VendorInfoAtom.from_bytes(raw) == atom


def test_vendor_too_short():
    with pytest.raises(InvalidDataError):
        VendorInfoAtom.from_bytes(bytes(VendorInfoAtom.SIZE - 1))


def test_vendor_rejects_bad_uuid_length():
    with pytest.raises(InvalidDataError):
        VendorInfoAtom.from_strings(1, 1, 1, "a", "b", b"\x01\x02")


def test_vendor_str():
    atom = VendorInfoAtom.from_strings(0x4D4F, 0x1234, 1, "TestVendor", "TestProduct", UUID)
    lines = str(atom).splitlines()
    assert lines[0] == "vendor_id: 0x4D4F"
    assert lines[1] == "product_id: 0x1234"
    assert lines[3] == "vendor: TestVendor"
    assert lines[4] == "product: TestProduct"
    assert lines[5].startswith("uuid: [12, 34, 56, 78, 9A, BC, DE, F0")


def test_gpio_round_trip():
    pins = bytearray(28)
    for pin in (18, 19, 20, 21):
        pins[pin] = 1
    atom = GpioMapAtom(flags=0x0001, pins=pins)
    raw = atom.to_bytes()
    assert len(raw) == GpioMapAtom.SIZE
    assert raw[2:] == bytes(pins)
    assert GpioMapAtom.from_bytes(raw) == atom


def test_gpio_rejects_wrong_pin_count():
    with pytest.raises(InvalidDataError):
        GpioMapAtom(flags=0, pins=bytes(27))


def test_gpio_too_short():
    with pytest.raises(InvalidDataError):
        GpioMapAtom.from_bytes(bytes(10))


def test_gpio_str():
    text = str(GpioMapAtom(flags=0xAA55, pins=bytes([1] * 28)))
    flags_line, pins_line = text.splitlines()
    assert flags_line == "flags: 0xAA55"
    assert pins_line == "pins: [" + ", ".join(["1"] * 28) + "]"


def test_dt_blob_atom_str():
    assert str(DtBlobAtom(dlen=42)) == "dlen: 42 (blob data not shown)"


def test_custom_atom_str_and_repr():
    atom = CustomAtom(atom_type=0x80, data=b"\x0a\xff")
    assert str(atom) == "atom_type: 0x80\ndata: [0A, FF]"
    assert repr(atom) == "CustomAtom { atom_type: 0x80, data: [10, 255] }"


def test_custom_atom_rejects_bad_type():
    with pytest.raises(InvalidDataError):
        CustomAtom(atom_type=256, data=b"x")