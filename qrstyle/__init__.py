"""qrstyle: styled, still-scannable QR code rendering."""

__version__ = "0.1.0"
