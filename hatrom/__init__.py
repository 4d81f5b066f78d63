"""Build, parse and verify Raspberry Pi HAT EEPROM images, and read or write them over I2C."""

__version__ = "0.3.2"

__all__ = ["__version__"]