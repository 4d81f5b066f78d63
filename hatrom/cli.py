"""Command-line interface for reading, writing, showing and detecting HAT EEPROMs."""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence

from hatrom.detect import (
    BUFFER_SIZE_ENV,
    detect_all_i2c_devices,
    detect_and_show_eeprom_info,
    read_buffer_size,
)
from hatrom.eeprom import Eeprom
from hatrom.errors import HatError
from hatrom.i2c import (
    DEFAULT_I2C_DEVICE,
    HAT_EEPROM_ADDR,
    read_from_eeprom_i2c,
    write_to_eeprom_i2c,
)

__all__ = ["main"]

PROG = "hatrom"

_SHORT_USAGE = f"Usage: {PROG} <read|write|show|detect> [options]"

_USAGE = f"""\
{_SHORT_USAGE}
Commands:
  read [i2c-dev] <output.bin>             Read HAT EEPROM via I2C and save to file
  write [i2c-dev] <input.bin>             Write HAT EEPROM from file to I2C device
  show <input.bin>                        Show parsed EEPROM info from file
  detect [i2c-dev]                        Auto-detect HAT EEPROM on specific device
  detect --all                            Scan all I2C devices for HAT EEPROM
Notes:
  HAT EEPROM always uses address 0x50 (automatic)
  Default I2C device is {DEFAULT_I2C_DEVICE} (HAT standard)
  Default buffer size is 32KB, customize with {BUFFER_SIZE_ENV} env variable
Examples:
  sudo {PROG} read hat_data.bin          # Read from {DEFAULT_I2C_DEVICE} to file
  sudo {PROG} write hat_data.bin         # Write from file to {DEFAULT_I2C_DEVICE}
  sudo {PROG} read /dev/i2c-1 hat.bin    # Read from specific I2C device
  {BUFFER_SIZE_ENV}=1048576 sudo {PROG} read big.bin  # Read 1MB EEPROM
  sudo {PROG} detect                     # Scan {DEFAULT_I2C_DEVICE} (HAT standard)
  sudo {PROG} detect --all               # Scan all I2C devices
  sudo {PROG} detect /dev/i2c-1          # Scan specific device"""


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def _device_usage(command: str, file_arg: str) -> None:
    _err(f"Usage: {PROG} {command} [i2c-dev] <{file_arg}>")
    _err(f"  Default I2C device: {DEFAULT_I2C_DEVICE}")
    _err(f"  HAT EEPROM address: 0x{HAT_EEPROM_ADDR:02X} (automatic)")


def _split_device_args(args: Sequence[str]) -> tuple[str, str]:
    if len(args) == 1:
        return DEFAULT_I2C_DEVICE, args[0]
    return args[0], args[1]


def _cmd_read(args: Sequence[str]) -> int:
    if not 1 <= len(args) <= 2:
        _device_usage("read", "output.bin")
        return 1
    dev, output_file = _split_device_args(args)
    buf_size = read_buffer_size()
    try:
        data = read_from_eeprom_i2c(buf_size, dev, HAT_EEPROM_ADDR, 0)
    except HatError as exc:
        _err(f"Read error: {exc}")
        return 1
    try:
        with open(output_file, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        _err(f"Failed to write output: {exc}")
        return 1
    print(
        f"HAT EEPROM read from {dev} (0x{HAT_EEPROM_ADDR:02X}) and saved to "
        f"{output_file} ({buf_size} bytes buffer used)"
    )
    print(f"Note: Set {BUFFER_SIZE_ENV} env variable if you need a different buffer size")
    return 0


def _read_input(path: str) -> bytes | None:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        _err(f"Failed to read input: {exc}")
        return None


def _cmd_write(args: Sequence[str]) -> int:
    if not 1 <= len(args) <= 2:
        _device_usage("write", "input.bin")
        return 1
    dev, input_file = _split_device_args(args)
    data = _read_input(input_file)
    if data is None:
        return 1
    try:
        write_to_eeprom_i2c(data, dev, HAT_EEPROM_ADDR)
    except HatError as exc:
        _err(f"Write error: {exc}")
        return 1
    print(f"HAT EEPROM written from {input_file} to {dev} (0x{HAT_EEPROM_ADDR:02X})")
    return 0


def _cmd_show(args: Sequence[str]) -> int:
    if len(args) != 1:
        _err(f"Usage: {PROG} show <input.bin>")
        return 1
    data = _read_input(args[0])
    if data is None:
        return 1
    try:
        eeprom = Eeprom.from_bytes(data)
    except HatError as exc:
        _err(f"Parse error: {exc}")
        return 1
    print(f"EEPROM info:\n{eeprom}")
    return 0


def _cmd_detect(args: Sequence[str]) -> int:
    try:
        if args and args[0] == "--all":
            detect_all_i2c_devices()
        else:
            dev = args[0] if args else DEFAULT_I2C_DEVICE
            read_len = read_buffer_size()
            detect_and_show_eeprom_info(dev, [HAT_EEPROM_ADDR], read_len)
    except HatError as exc:
        _err(f"Detection error: {exc}")
        return 1
    return 0


_COMMANDS: dict[str, Callable[[Sequence[str]], int]] = {
    "read": _cmd_read,
    "write": _cmd_write,
    "show": _cmd_show,
    "detect": _cmd_detect,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _err(_USAGE)
        return 1
    command, rest = args[0], args[1:]
    handler = _COMMANDS.get(command)
    if handler is None:
        _err(f"Unknown command: {command}")
        _err(_SHORT_USAGE)
        return 1
    return handler(rest)


if __name__ == "__main__":
    sys.exit(main())