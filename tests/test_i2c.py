from unittest import mock

import pytest

from hatrom.atoms import EepromHeader, GpioMapAtom, VendorInfoAtom
from hatrom.eeprom import Eeprom
from hatrom.errors import I2cError, InvalidCrcError, InvalidDataError
from hatrom.i2c import (
    HAT_EEPROM_ADDR,
    I2C_SLAVE,
    READ_CHUNK_SIZE,
    WRITE_PAGE_SIZE,
    I2cDevice,
    read_from_eeprom_i2c,
    validate_image,
    write_to_eeprom_i2c,
)

DEV = "/dev/i2c-test"


class FakeEeprom:
    """A file-like stand-in for an EEPROM behind an I2C device node."""

    def __init__(self, contents=b"", size=65536):
        self.memory = bytearray(bytes(contents).ljust(size, b"\xff"))
        self.pointer = 0
        self.writes = []
        self.closed = False

    def fileno(self):
        return 42

    def write(self, data):
        data = bytes(data)
        self.writes.append(data)
        self.pointer = int.from_bytes(data[:2], "big")
        payload = data[2:]
        self.memory[self.pointer : self.pointer + len(payload)] = payload
        self.pointer += len(payload)
        return len(data)

    def read(self, size):
        chunk = bytes(self.memory[self.pointer : self.pointer + size])
        self.pointer += size
        return chunk

    def close(self):
        self.closed = True


@pytest.fixture
def bus():
    devices = {}

    def fake_open(path, mode="r", buffering=-1):
        if path not in devices:
            raise FileNotFoundError(path)
        return devices[path]

    with mock.patch("hatrom.i2c.open", side_effect=fake_open, create=True), mock.patch(
        "hatrom.i2c.fcntl.ioctl"
    ) as ioctl, mock.patch("hatrom.i2c.time.sleep"):
        yield devices, ioctl


def make_image():
    eeprom = Eeprom(
        vendor_info=VendorInfoAtom.from_strings(
            0x4D4F, 0x1234, 1, "TestVendor", "TestProduct", bytes([0x12, 0x34] * 8)
        ),
        gpio_map_bank0=GpioMapAtom(0, bytes(28)),
    )
    eeprom.add_custom_atom(0x80, b"custom")
    return eeprom, eeprom.serialize_with_crc()


def test_validate_image_returns_header():
    eeprom, image = make_image()
    header = validate_image(image)
    assert header.numatoms == eeprom.header.numatoms
    assert header.eeplen == eeprom.header.eeplen


def test_validate_short_image():
    with pytest.raises(InvalidDataError):
        validate_image(b"R-Pi")


def test_validate_bad_signature():
    _, image = make_image()
    with pytest.raises(InvalidDataError):
        validate_image(b"X-Pi" + image[4:])


def test_validate_zero_version():
    eeprom, _ = make_image()
    eeprom.set_version(0)
    with pytest.raises(InvalidDataError):
        validate_image(eeprom.serialize_with_crc())


def test_validate_zero_atoms():
    with pytest.raises(InvalidDataError):
        validate_image(EepromHeader(numatoms=0, eeplen=12).to_bytes())


def test_validate_length_larger_than_data():
    with pytest.raises(InvalidDataError):
        validate_image(EepromHeader(numatoms=1, eeplen=100).to_bytes())


def test_validate_length_below_header():
    with pytest.raises(InvalidDataError):
        validate_image(EepromHeader(numatoms=1, eeplen=4).to_bytes())


def test_validate_bad_crc():
    _, image = make_image()
    corrupted = bytearray(image)
    corrupted[-1] ^= 0xFF
    with pytest.raises(InvalidCrcError):
        validate_image(bytes(corrupted))


def test_validate_bare_header_without_crc():
    header = validate_image(EepromHeader(numatoms=1, eeplen=12).to_bytes())
    assert header.eeplen == 12


def test_write_then_read_round_trip(bus):
    devices, ioctl = bus
    fake = FakeEeprom()
    devices[DEV] = fake
    _, image = make_image()

    write_to_eeprom_i2c(image, DEV, HAT_EEPROM_ADDR)

    assert fake.closed
    ioctl.assert_called_with(42, I2C_SLAVE, HAT_EEPROM_ADDR)
    assert all(len(w) <= WRITE_PAGE_SIZE + 2 for w in fake.writes)
    position = 0
    for w in fake.writes:
        assert int.from_bytes(w[:2], "big") == position
        position += len(w) - 2
    assert position == len(image)

    fake.closed = False
    assert read_from_eeprom_i2c(len(image), DEV, HAT_EEPROM_ADDR, 0) == image


def test_write_invalid_image_never_opens_device(bus):
    devices, ioctl = bus
    with pytest.raises(InvalidDataError):
        write_to_eeprom_i2c(b"garbage", DEV, HAT_EEPROM_ADDR)
    assert ioctl.call_count == 0


def test_read_with_offset(bus):
    devices, _ = bus
    contents = bytes(range(200))
    devices[DEV] = FakeEeprom(contents)
    assert read_from_eeprom_i2c(10, DEV, HAT_EEPROM_ADDR, 4) == contents[4:14]


def test_read_in_chunks(bus):
    devices, _ = bus
    contents = bytes(range(256)) * 2
    fake = FakeEeprom(contents)
    devices[DEV] = fake
    data = read_from_eeprom_i2c(100, DEV, HAT_EEPROM_ADDR, 0)
    assert data == contents[:100]
    assert all(len(w) == 2 for w in fake.writes)
    offsets = [int.from_bytes(w, "big") for w in fake.writes]
    assert offsets == list(range(0, 100, READ_CHUNK_SIZE))


def test_missing_device_raises_i2c_error(bus):
    with pytest.raises(I2cError) as excinfo:
        read_from_eeprom_i2c(16, "/dev/i2c-missing", HAT_EEPROM_ADDR, 0)
    assert str(excinfo.value) == "I2C communication error"


def test_ioctl_failure_closes_device(bus):
    devices, ioctl = bus
    fake = FakeEeprom()
    devices[DEV] = fake
    ioctl.side_effect = OSError("no such address")
    with pytest.raises(I2cError):
        I2cDevice(DEV, HAT_EEPROM_ADDR)
    assert fake.closed


def test_short_read_raises(bus):
    devices, _ = bus
    devices[DEV] = FakeEeprom(b"R-Pi", size=10)
    with pytest.raises(I2cError):
        read_from_eeprom_i2c(20, DEV, HAT_EEPROM_ADDR, 0)


def test_device_context_manager(bus):
    devices, _ = bus
    fake = FakeEeprom(b"R-Pi")
    devices[DEV] = fake
    with I2cDevice(DEV, HAT_EEPROM_ADDR) as device:
        device.write(b"\x00\x00")
        assert device.read(4) == b"R-Pi"
    assert fake.closed