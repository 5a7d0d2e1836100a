"""Reading and writing archives in the cpio "newc" format."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Union

MAGIC = b"070701"
TRAILER = "TRAILER!!!"
HEADER_SIZE = 110
REGULAR_FILE_MODE = 0o100644

_FIELDS = (
    "ino",
    "mode",
    "uid",
    "gid",
    "nlink",
    "mtime",
    "filesize",
    "devmajor",
    "devminor",
    "rdevmajor",
    "rdevminor",
    "namesize",
    "check",
)


class CpioError(ValueError):
    """Raised when an archive is malformed."""


@dataclass(frozen=True)
class CpioEntry:
    """One member of an archive."""

    name: str
    data: bytes
    mode: int = REGULAR_FILE_MODE

    @property
    def size(self) -> int:
        return len(self.data)


def _align(value: int, boundary: int = 4) -> int:
    return (value + boundary - 1) & ~(boundary - 1)


def _parse_header(header: bytes) -> dict[str, int]:
    fields = {}
    for index, field in enumerate(_FIELDS):
        start = 6 + index * 8
        text = header[start:start + 8]
        try:
            fields[field] = int(text.decode("ascii"), 16)
        except (UnicodeDecodeError, ValueError) as exc:
            raise CpioError(f"Invalid hex in field {field}: {text!r}") from exc
    return fields


def iter_entries(data: bytes) -> Iterator[CpioEntry]:
    """Yield the members of an archive in order, stopping at the trailer."""
    data = bytes(data)
    offset = 0
    while True:
        header = data[offset:offset + HEADER_SIZE]
        if len(header) < HEADER_SIZE:
            raise CpioError("Truncated cpio header")
        if header[:6] != MAGIC:
            raise CpioError(f"Invalid cpio header: {header[:6]!r}")
        fields = _parse_header(header)
        namesize = fields["namesize"]
        filesize = fields["filesize"]

        name_start = offset + HEADER_SIZE
        raw_name = data[name_start:name_start + namesize]
        if len(raw_name) < namesize:
            raise CpioError("Truncated cpio file name")
        try:
            name = raw_name.split(b"\0", 1)[0].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CpioError(f"Undecodable file name: {raw_name!r}") from exc

        if name == TRAILER:
            return

        data_start = offset + _align(HEADER_SIZE + namesize)
        data_end = data_start + filesize
        if data_end > len(data):
            raise CpioError(f"Truncated data for {name}")
        yield CpioEntry(name, data[data_start:data_end], fields["mode"])
        offset = data_start + _align(filesize)


def list_names(data: bytes) -> list[str]:
    """Return the names of all members of an archive."""
    return [entry.name for entry in iter_entries(data)]


def _find(data: bytes, name: str) -> CpioEntry:
    for entry in iter_entries(data):
        if entry.name == name:
            return entry
    raise FileNotFoundError(f"{name}:  No such file or directory")


def read_file(data: bytes, name: str) -> bytes:
    """Return the contents of the member called ``name``."""
    return _find(data, name).data


def file_size(data: bytes, name: str) -> int:
    """Return the size in bytes of the member called ``name``."""
    return _find(data, name).size


def _encode_member(ino: int, name: str, payload: bytes, mode: int) -> bytes:
    raw_name = name.encode("utf-8") + b"\0"
    values = {
        "ino": ino,
        "mode": mode,
        "uid": 0,
        "gid": 0,
        "nlink": 1,
        "mtime": 0,
        "filesize": len(payload),
        "devmajor": 0,
        "devminor": 0,
        "rdevmajor": 0,
        "rdevminor": 0,
        "namesize": len(raw_name),
        "check": 0,
    }
    header = MAGIC + b"".join(f"{values[f]:08X}".encode("ascii") for f in _FIELDS)
    head = header + raw_name
    head += b"\0" * (_align(len(head)) - len(head))
    body = payload + b"\0" * (_align(len(payload)) - len(payload))
    return head + body


def build_archive(
    files: Union[Mapping[str, bytes], Iterable[tuple[str, bytes]]],
) -> bytes:
    """Build a newc archive from names and contents, ending with a trailer."""
    items = files.items() if isinstance(files, Mapping) else files
    parts = []
    ino = 0
    for ino, (name, payload) in enumerate(items, start=1):
        if name == TRAILER:
            raise CpioError(f"{TRAILER} is reserved for the archive trailer")
        parts.append(_encode_member(ino, name, bytes(payload), REGULAR_FILE_MODE))
    parts.append(_encode_member(0, TRAILER, b"", 0))
    return b"".join(parts)