import pytest

from kernvfs.boot import (
    BootImage,
    BootImageError,
    build_boot_image,
    checksum,
    format_dec,
    format_hex,
    parse_boot_image,
)

KERNEL = bytes(range(256)) * 3 + b"tail"


def test_round_trip():
    image = parse_boot_image(build_boot_image(KERNEL))
    assert image == BootImage(KERNEL, checksum(KERNEL))
    assert image.size == len(KERNEL)


def test_image_layout():
    image = build_boot_image(b"abc")
    assert image[:4] == b"BOOT"
    assert int.from_bytes(image[4:8], "little") == 3
    assert int.from_bytes(image[8:12], "little") == checksum(b"abc")
    assert image[12:] == b"abc"


def test_checksum_uses_unsigned_bytes():
    assert checksum(b"\x01\x02\xff") == 258


def test_checksum_is_additive():
    a, b = b"\xff" * 100, b"kernel"
    assert checksum(a + b) == (checksum(a) + checksum(b)) % 2**32


def test_checksum_empty():
    assert checksum(b"") == 0


def test_bad_magic_raises():
    image = build_boot_image(KERNEL)
    with pytest.raises(BootImageError, match="Invalid kernel image"):
        parse_boot_image(b"BOOX" + image[4:])


def test_checksum_mismatch_raises():
    image = bytearray(build_boot_image(KERNEL))
    image[-1] ^= 0x01
    with pytest.raises(BootImageError, match="Checksum failed"):
        parse_boot_image(bytes(image))


def test_truncated_kernel_raises():
    image = build_boot_image(KERNEL)
    with pytest.raises(BootImageError):
        parse_boot_image(image[:-1])


def test_truncated_header_raises():
    with pytest.raises(BootImageError):
        parse_boot_image(b"BOOT\x01")


def test_extra_bytes_are_ignored():
    image = parse_boot_image(build_boot_image(b"xyz") + b"junk")
    assert image.kernel == b"xyz"


def test_format_hex_pads_to_eight_digits():
    assert format_hex(0x80000) == "0x00080000"
    assert format_hex(0xDEADBEEF) == "0xdeadbeef"


def test_format_hex_masks_to_32_bits():
    assert format_hex(0x1DEADBEEF) == format_hex(0xDEADBEEF)


def test_format_dec():
    assert format_dec(12345) == "12345"
    assert format_dec(0) == ""


def test_format_dec_masks_to_32_bits():
    assert format_dec(2**32 + 7) == "7"