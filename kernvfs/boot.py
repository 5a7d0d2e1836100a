"""Kernel images sent to the boot loader over a serial line.

An image is the magic ``BOOT``, the kernel size and a checksum (both
32-bit little endian), followed by the kernel bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

BOOT_MAGIC = b"BOOT"
_HEADER = struct.Struct("<4sII")
_MASK = 0xFFFFFFFF


class BootImageError(ValueError):
    """Raised when a boot image is invalid."""


@dataclass(frozen=True)
class BootImage:
    """A parsed and verified boot image."""

    kernel: bytes
    checksum: int

    @property
    def size(self) -> int:
        return len(self.kernel)


def checksum(data: bytes) -> int:
    """Sum of the bytes of ``data`` as unsigned values, modulo 2**32."""
    return sum(bytes(data)) & _MASK


def parse_boot_image(data: bytes) -> BootImage:
    """Parse and verify a boot image."""
    data = bytes(data)
    if data[:4] != BOOT_MAGIC:
        raise BootImageError("Invalid kernel image.")
    if len(data) < _HEADER.size:
        raise BootImageError("Truncated boot image header.")
    _, size, expected = _HEADER.unpack_from(data)
    kernel = data[_HEADER.size:_HEADER.size + size]
    if len(kernel) < size:
        raise BootImageError(
            f"Truncated kernel: expected {size} bytes, got {len(kernel)}."
        )
    if checksum(kernel) != expected:
        raise BootImageError("Checksum failed.")
    return BootImage(kernel, expected)


def build_boot_image(kernel: bytes) -> bytes:
    """Return ``kernel`` prefixed with the boot header."""
    kernel = bytes(kernel)
    if len(kernel) > _MASK:
        raise BootImageError("Kernel too large for a 32-bit size field.")
    return _HEADER.pack(BOOT_MAGIC, len(kernel), checksum(kernel)) + kernel


def format_hex(value: int) -> str:
    """Format a 32-bit value as ``0x`` and eight lower-case hex digits."""
    return f"0x{value & _MASK:08x}"


def format_dec(value: int) -> str:
    """Format a 32-bit unsigned value in decimal.

    Zero has no digits and comes out as the empty string.
    """
    value &= _MASK
    return str(value) if value else ""