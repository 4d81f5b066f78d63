# hatrom

Tools for the identification EEPROM found on Raspberry Pi HAT add-on boards.

`hatrom` builds an EEPROM image from vendor information, GPIO maps, a
device-tree blob and your own custom atoms; parses an existing image back into
its parts; checks the trailing CRC32; and, on Linux, reads or writes the
EEPROM over an I2C bus device such as `/dev/i2c-0`.

It needs nothing beyond the Python standard library and supports Python 3.10
and later.

## Installing

```
pip install hatrom
```

## Image layout

An image starts with a 12-byte header: the signature `R-Pi`, a format
version, a reserved byte, the number of atoms (little endian, 16 bits) and the
total length (little endian, 32 bits). Atoms follow, each with an 8-byte atom
header (type, count, data length, reserved) and then its data:

| Type   | Atom                      | Size      | Required |
|--------|---------------------------|-----------|----------|
| `0x01` | Vendor info               | 54 bytes  | yes      |
| `0x02` | GPIO map, bank 0          | 30 bytes  | yes      |
| `0x03` | Device-tree blob          | any       | no       |
| `0x04` | GPIO map, bank 1          | 30 bytes  | no       |
| other  | Custom, application data  | any       | no       |

`Eeprom.serialize_with_crc()` appends a CRC32 (IEEE 802.3, little endian)
computed over everything before it.

## Modules

- `hatrom.crc32` – `Hasher` (incremental: `update(data)`, `finalize()`) and
  the one-shot `crc32(data)`.
- `hatrom.atoms` – the packed structures: `EepromHeader`, `AtomHeader`,
  `VendorInfoAtom`, `GpioMapAtom`, `DtBlobAtom`, `CustomAtom`, and the
  `AtomType` enum (`AtomType.from_byte(value)` maps unknown bytes to
  `AtomType.UNKNOWN`). Each fixed-size structure has `to_bytes()` and
  `from_bytes(data)`; field values are range-checked on construction.
- `hatrom.eeprom` – `Eeprom`, the whole image.
- `hatrom.i2c` – `I2cDevice`, `validate_image`, `read_from_eeprom_i2c`,
  `write_to_eeprom_i2c`.
- `hatrom.detect` – `find_i2c_devices`, `detect_and_show_eeprom_info`,
  `detect_all_i2c_devices`, `read_buffer_size`.
- `hatrom.samples` – ready-made example images.
- `hatrom.errors` – the exceptions.
- `hatrom.cli` – the `hatrom` command.

## Using the library

```python
from hatrom.atoms import GpioMapAtom
from hatrom.crc32 import crc32
from hatrom.eeprom import Eeprom
from hatrom.samples import simple_eeprom

eeprom = simple_eeprom()
eeprom.add_custom_atom(0x81, b"MODE=SENSORS,INTERVAL=250")
eeprom.add_gpio_map_bank1(GpioMapAtom(flags=0x0000, pins=bytes(28)))

image = eeprom.serialize_with_crc()
assert Eeprom.verify_crc(image)

parsed = Eeprom.from_bytes(image[:-4])
print(parsed.vendor_info.vendor_name(), parsed.vendor_info.product_name())
print(parsed)

assert crc32(b"123456789") == 0xCBF43926
```

`VendorInfoAtom.from_strings(vendor_id, product_id, product_ver, vendor,
product, uuid)` fills the fixed 16-byte name fields, truncating each UTF-8
encoded name to 15 bytes so a terminating zero always remains.

The `add_*` methods of `Eeprom` (`add_vendor_info`, `add_gpio_map_bank0`,
`add_dt_blob`, `add_gpio_map_bank1`, `add_custom_atom`) set the atom and call
`update_header()`, which recomputes `numatoms` and `eeplen`. If you change
fields directly, call `update_header()` yourself before serialising.
`set_version(version)` changes the header's format version, and `is_valid()`
reports whether the signature is `R-Pi` and the version is non-zero.

`Eeprom.calculate_serialized_size()` gives the length of `serialize()` output
(without CRC), and `Eeprom.serialize_into(buffer, offset)` writes the image
into a `bytearray` or writable `memoryview` you supply, returning the new
offset and raising `BufferTooSmallError` if a part does not fit.

`Eeprom.from_bytes(data)` reads as many atoms as the header announces and
ignores anything after them, so it accepts an image with or without its CRC.
It raises `InvalidDataError` when the data is truncated, the signature is
wrong, or the vendor info or GPIO bank 0 atom is missing.
`Eeprom.verify_crc(data)` returns a bool; `Eeprom.verify_crc_with_details(data)`
raises `InvalidDataError` for data shorter than four bytes and
`InvalidCrcError` on a mismatch.

All errors derive from `hatrom.errors.HatError`: `I2cError` (also an
`OSError`), `InvalidDataError`, `InvalidCrcError` and `BufferTooSmallError`
(also `ValueError`s), `DeviceNotFoundError` and `DeviceTimeoutError`.

### Sample images

`hatrom.samples` provides `simple_eeprom()`, `advanced_eeprom()` (GPIO 18–21
as outputs plus a device-tree overlay text as blob), `custom_atoms_eeprom(version)`
(four custom atoms, types `0x81`–`0x84`) and `bare_metal_eeprom()` (one
custom atom, type `0x80`). `write_sample(eeprom, path)` updates the header,
writes the image with its CRC to `path` (creating parent directories) and
returns the bytes written.

## Command line

```
hatrom show hat.bin                 # print the parsed contents of an image file
hatrom read hat.bin                 # read the EEPROM on /dev/i2c-0 into a file
hatrom read /dev/i2c-1 hat.bin      # read from a specific bus
hatrom write hat.bin                # write an image file to /dev/i2c-0
hatrom write /dev/i2c-1 hat.bin     # write to a specific bus
hatrom detect                       # look for a HAT EEPROM on /dev/i2c-0
hatrom detect /dev/i2c-1            # look on a specific bus
hatrom detect --all                 # look on every /dev/i2c-* bus
```

Running `hatrom` with no arguments prints the full usage text. The command
exits with status 1 on bad arguments or any error.

The HAT EEPROM is always addressed at I2C address `0x50`. `read` and `detect`
read a 32 KiB buffer by default; `read` saves the whole buffer to the file.
The buffer size can be changed through the environment variable whose name is
`hatrom.detect.BUFFER_SIZE_ENV` (it is also shown in the usage text); values
below 1 KiB are raised to 1 KiB and unparsable values fall back to 32 KiB.

Before writing, `validate_image` checks the image: it must carry the `R-Pi`
signature, a non-zero version and atom count, a header length between 12
bytes and the file size and, for images of 16 bytes or more, a matching
trailing CRC32. Data is written in 16-byte pages, each prefixed by a two-byte
big-endian offset, with a 10 ms pause after each page. Reads go in 32-byte
chunks.

`detect` prints the first bytes found, an analysis of the header, and either
the parsed image or diagnostics explaining why it could not be parsed.

## Limitations

- I2C access works only on Linux (or another POSIX system with the same
  `/dev/i2c-*` interface); elsewhere `I2cDevice` raises `I2cError`. Accessing
  those devices usually needs root or membership of the `i2c` group.
- There is no command to build an image; images are built with the library,
  for example with `hatrom.samples.write_sample`.
- Device-tree blobs are stored and returned as raw bytes; they are not
  compiled or decoded.

## Running the tests

```
pip install -e ".[test]"
pytest
```