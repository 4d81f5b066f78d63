"""Ready-made EEPROM images for demonstrations and test fixtures."""

from __future__ import annotations

import struct
from pathlib import Path

from hatrom.atoms import EepromHeader, GpioMapAtom, VendorInfoAtom
from hatrom.eeprom import Eeprom

__all__ = [
    "DEMO_DT_OVERLAY",
    "simple_eeprom",
    "advanced_eeprom",
    "custom_atoms_eeprom",
    "bare_metal_eeprom",
    "write_sample",
]

_SEQUENTIAL_UUID = bytes(
    [0x00, 0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77, 0x88, 0x99, 0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF]
)

DEMO_DT_OVERLAY = b"""# Simple Device Tree overlay for demo HAT
/dts-v1/;
/plugin/;

/ {
    compatible = "brcm,bcm2835";

    fragment@0 {
        target = <&gpio>;
        __overlay__ {
            demo_pins: demo_pins {
                brcm,pins = <18 19 20 21>;
                brcm,function = <1>; /* GPIO_OUT */
            };
        };
    };

    fragment@1 {
        target-path = "/";
        __overlay__ {
            demo_hat {
                compatible = "acme,demo-hat";
                pinctrl-names = "default";
                pinctrl-0 = <&demo_pins>;
                status = "okay";
            };
        };
    };
};"""


def _pins(assignments: dict[int, int]) -> bytes:
    pins = bytearray(28)
    for pin, value in assignments.items():
        pins[pin] = value
    return bytes(pins)


def _build(
    vendor: VendorInfoAtom,
    gpio: GpioMapAtom,
    dt_blob: bytes | None = None,
    custom_atoms: list[tuple[int, bytes]] | None = None,
) -> Eeprom:
    eeprom = Eeprom(
        header=EepromHeader(),
        vendor_info=vendor,
        gpio_map_bank0=gpio,
        dt_blob=dt_blob,
        gpio_map_bank1=None,
        custom_atoms=list(custom_atoms or []),
    )
    eeprom.update_header()
    return eeprom


def simple_eeprom() -> Eeprom:
    """A minimal image: vendor info and an unused GPIO bank 0."""
    vendor = VendorInfoAtom.from_strings(
        0x5349, 0x4D50, 1, "Simple", "MinimalHAT", _SEQUENTIAL_UUID
    )
    return _build(vendor, GpioMapAtom(0x0000, bytes(28)))


def advanced_eeprom() -> Eeprom:
    """An image with GPIO 18-21 as outputs and a device tree overlay blob."""
    vendor = VendorInfoAtom.from_strings(
        0x414C,
        0x2024,
        1,
        "Demo Vendor",
        "Advanced HAT Demo",
        bytes(
            [0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC, 0xDE, 0xF0,
             0xFE, 0xDC, 0xBA, 0x98, 0x76, 0x54, 0x32, 0x10]
        ),
    )
    gpio = GpioMapAtom(0x0001, _pins({18: 1, 19: 1, 20: 1, 21: 1}))
    return _build(vendor, gpio, dt_blob=DEMO_DT_OVERLAY)


def custom_atoms_eeprom(version: str = "0.3.2") -> Eeprom:
    """An image carrying four application-specific atoms (types 0x81-0x84).

    ``version`` is embedded in the hardware info atom as ``HW_VERSION``.
    """
    vendor = VendorInfoAtom.from_strings(
        0x4143, 0x0001, 2, "ACME Custom HATs", "SensorBoard Plus", _SEQUENTIAL_UUID
    )
    gpio = GpioMapAtom(
        0x0000,
        _pins({4: 0x01, 17: 0x02, 18: 0x02, 22: 0x01, 23: 0x01, 24: 0x02, 25: 0x02}),
    )
    config = b"MODE=SENSORS,INTERVAL=250,UNITS=METRIC"
    # Temperature, humidity and pressure: offset then gain, big-endian f32.
    calibration = struct.pack(">6f", -2.5, 1.03, 1.2, 0.98, 15.0, 1.0)
    hw_info = f"HW_VERSION={version},PCB_REV=C,ASSEMBLY_DATE=2024-12-20".encode()
    lookup_table = bytes((i * i) & 0xFF for i in range(32))
    custom = [
        (0x81, config),
        (0x82, calibration),
        (0x83, hw_info),
        (0x84, lookup_table),
    ]
    return _build(vendor, gpio, custom_atoms=custom)


def bare_metal_eeprom() -> Eeprom:
    """A small image with one custom greeting atom (type 0x80)."""
    vendor = VendorInfoAtom.from_strings(
        0x0001,
        0x0002,
        0x0001,
        "Acme Corp",
        "Test HAT",
        bytes(
            [0x12, 0x34, 0x56, 0x78, 0x9A, 0xBC, 0xDE, 0xF0,
             0x11, 0x22, 0x33, 0x44, 0x55, 0x66, 0x77, 0x88]
        ),
    )
    gpio = GpioMapAtom(0x0001, bytes(28))
    return _build(vendor, gpio, custom_atoms=[(0x80, b"Hello, Bare Metal!")])


def write_sample(eeprom: Eeprom, path: str | Path) -> bytes:
    """Write ``eeprom`` with its CRC to ``path``, creating parent directories.

    Returns the bytes written.
    """
    eeprom.update_header()
    data = eeprom.serialize_with_crc()
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return data