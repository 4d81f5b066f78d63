"""Scanning I2C buses for HAT EEPROMs and reporting what is found."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping

from hatrom.atoms import SIGNATURE, EepromHeader
from hatrom.eeprom import Eeprom
from hatrom.errors import HatError
from hatrom.i2c import HAT_EEPROM_ADDR, read_from_eeprom_i2c

__all__ = [
    "BUFFER_SIZE_ENV",
    "DEFAULT_BUFFER_SIZE",
    "MIN_BUFFER_SIZE",
    "DEV_DIR",
    "read_buffer_size",
    "find_i2c_devices",
    "detect_and_show_eeprom_info",
    "detect_all_i2c_devices",
]

BUFFER_SIZE_ENV = "EHATROM_BUFFER_SIZE"
DEFAULT_BUFFER_SIZE = 32 * 1024
MIN_BUFFER_SIZE = 1024
DEV_DIR = "/dev"

_UINT_RE = re.compile(r"\+?[0-9]+")
_USIZE_MAX = (1 << 64) - 1
_U32_MAX = (1 << 32) - 1


def _hex_list(values: Iterable[int]) -> str:
    return "[" + ", ".join(f"{v:02X}" for v in values) + "]"


def _parse_uint(text: str, maximum: int) -> int | None:
    if not _UINT_RE.fullmatch(text):
        return None
    value = int(text)
    return value if value <= maximum else None


def read_buffer_size(environ: Mapping[str, str] | None = None) -> int:
    """Return the read buffer size configured by ``EHATROM_BUFFER_SIZE``.

    Falls back to 32 KiB when unset or unparsable, and never goes below 1 KiB.
    """
    env = os.environ if environ is None else environ
    raw = env.get(BUFFER_SIZE_ENV)
    if raw is None:
        return DEFAULT_BUFFER_SIZE
    size = _parse_uint(raw, _USIZE_MAX)
    if size is None:
        print(f"Warning: Failed to parse {BUFFER_SIZE_ENV}, using 32KB")
        return DEFAULT_BUFFER_SIZE
    if size < MIN_BUFFER_SIZE:
        print("Warning: Buffer size too small, using minimum 1KB")
        return MIN_BUFFER_SIZE
    print(f"Using custom buffer size: {size} bytes")
    return size


def _device_number(path: str) -> int:
    number = _parse_uint(path.split("-")[-1], _U32_MAX)
    return 0 if number is None else number


def find_i2c_devices(dev_dir: str = DEV_DIR) -> list[str]:
    """List ``i2c-N`` device paths in ``dev_dir``, sorted by bus number."""
    try:
        names = os.listdir(dev_dir)
    except OSError:
        return []
    devices = [
        os.path.join(dev_dir, name)
        for name in names
        if name.startswith("i2c-")
        and len(name) > 4
        and _parse_uint(name[4:], _U32_MAX) is not None
    ]
    devices.sort(key=_device_number)
    return devices


def _print_header_analysis(buf: bytes) -> None:
    header = EepromHeader.from_bytes(buf)
    print("EEPROM header analysis:")
    print(f"  Version: {header.version}")
    print(f"  Reserved: {header.reserved}")
    print(f"  Number of atoms: {header.numatoms}")
    print(f"  EEPROM length: {header.eeplen} bytes")
    if header.numatoms == 0:
        print("⚠️ Warning: Header indicates 0 atoms, which is invalid")
    if header.eeplen > len(buf):
        print(
            f"⚠️ Warning: Header indicates EEPROM length ({header.eeplen} bytes) "
            f"is larger than read buffer ({len(buf)} bytes)"
        )
        suggested = max(header.eeplen + 1024, len(buf) * 2)
        print(f"   Consider using {BUFFER_SIZE_ENV}={suggested} to read the full EEPROM")


def _print_parse_diagnostics(buf: bytes) -> None:
    if len(buf) >= 64:
        print(f"Raw data (first 64 bytes): {_hex_list(buf[:64])}")
    if len(buf) >= EepromHeader.SIZE:
        header = EepromHeader.from_bytes(buf)
        if header.version == 0:
            print("❌ Invalid version: 0 (should be > 0)")
        if header.numatoms == 0:
            print("❌ Invalid atom count: 0 (should be > 0)")
        if header.eeplen < EepromHeader.SIZE:
            print(f"❌ Invalid EEPROM length: {header.eeplen} (should be >= 12)")
        if header.eeplen > len(buf):
            print(
                f"⚠️ EEPROM data truncated: expected {header.eeplen} bytes, "
                f"but read only {len(buf)} bytes"
            )
    if Eeprom.verify_crc(buf):
        print("✅ CRC verification passed")
    else:
        print("❌ CRC verification failed")


def detect_and_show_eeprom_info(
    dev_path: str, possible_addrs: Iterable[int], read_len: int
) -> Eeprom | None:
    """Probe ``possible_addrs`` on ``dev_path`` and print what is found.

    Returns the first EEPROM that parses, or ``None``.
    """
    addrs = list(possible_addrs)
    print(f"Scanning I2C bus {dev_path} for HAT EEPROM...")
    print(f"Checking addresses: {_hex_list(addrs)}")

    for addr in addrs:
        print(f"Trying 0x{addr:02X}... ", end="")
        try:
            buf = read_from_eeprom_i2c(read_len, dev_path, addr, 0)
        except HatError as exc:
            print(f"read error: {exc}")
            continue
        if len(buf) < 4 or buf[:4] != SIGNATURE:
            print(f"no HAT signature (first 4 bytes: {_hex_list(buf[:4])})")
            continue

        print("Found HAT EEPROM!")
        print(f"First 16 bytes: {_hex_list(buf[:16])}")
        if len(buf) >= EepromHeader.SIZE:
            _print_header_analysis(buf)

        try:
            eeprom = Eeprom.from_bytes(buf)
        except HatError as exc:
            print(f"EEPROM found at 0x{addr:02X} but failed to parse: {exc}")
            _print_parse_diagnostics(buf)
            continue
        print(f"EEPROM found at 0x{addr:02X} on {dev_path}")
        print(eeprom)
        return eeprom

    print(f"No valid Raspberry Pi HAT EEPROM found on bus {dev_path}")
    return None


def detect_all_i2c_devices() -> bool:
    """Scan every I2C bus for a HAT EEPROM; True when a scan completed."""
    devices = find_i2c_devices(DEV_DIR)
    if not devices:
        print(f"No I2C devices found in {DEV_DIR}")
        print("Make sure I2C is enabled and you have proper permissions.")
        return False

    listing = "[" + ", ".join(f'"{d}"' for d in devices) + "]"
    print(f"Found {len(devices)} I2C device(s): {listing}")
    print()

    read_len = read_buffer_size()
    found_any = False
    for device in devices:
        print(f"=== Scanning {device} ===")
        try:
            detect_and_show_eeprom_info(device, [HAT_EEPROM_ADDR], read_len)
        except HatError as exc:
            print(f"Error scanning {device}: {exc}")
            print()
            continue
        found_any = True
        print()

    if not found_any:
        print("No HAT EEPROM found on any I2C device.")
        print("This could mean:")
        print("  • No HAT is connected")
        print("  • HAT EEPROM is not programmed")
        print("  • HAT uses a different I2C address")
        print("  • Permissions issue (try running with sudo)")
    return found_any