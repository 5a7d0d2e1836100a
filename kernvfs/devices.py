"""Character devices: a serial line and a linear frame buffer."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .vfs import (
    FileOperations,
    InvalidArgument,
    NoSpace,
    NotSupported,
    OpenFile,
    VNode,
    Whence,
)

DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 768
DEFAULT_DEPTH = 32


def _device_seek(file: OpenFile, offset: int, whence: int) -> int:
    """Seek on a device without an end: END keeps the current position."""
    if file is None:
        raise InvalidArgument("File is required")
    try:
        whence = Whence(whence)
    except ValueError as exc:
        raise InvalidArgument(f"Invalid whence: {whence}") from exc
    if whence is Whence.SET:
        position = offset
    elif whence is Whence.CUR:
        position = file.f_pos + offset
    else:
        position = file.f_pos
    if position < 0:
        raise InvalidArgument("Negative position not allowed")
    file.f_pos = position
    return position


class _Device(FileOperations):
    def open(self, vnode: VNode) -> OpenFile:
        if vnode is None:
            raise InvalidArgument("Vnode is required")
        return OpenFile(vnode=vnode, f_ops=self, f_pos=0)

    def close(self, file: OpenFile) -> None:
        if file is None:
            raise InvalidArgument("File is required")

    def lseek(self, file: OpenFile, offset: int, whence: int) -> int:
        return _device_seek(file, offset, whence)


class UartDevice(_Device):
    """A serial line that reads from ``rx`` and writes to ``tx``."""

    def __init__(
        self, rx: Optional[BinaryIO] = None, tx: Optional[BinaryIO] = None
    ) -> None:
        self.rx = rx if rx is not None else io.BytesIO()
        self.tx = tx if tx is not None else io.BytesIO()

    def open(self, vnode: VNode) -> OpenFile:
        return super().open(vnode)

    def close(self, file: OpenFile) -> None:
        super().close(file)

    def read(self, file: OpenFile, size: int) -> bytes:
        """Read up to ``size`` bytes, stopping at a NUL byte or end of input."""
        if file is None or size is None or size <= 0:
            raise InvalidArgument("File and a positive size are required")
        received = bytearray()
        while len(received) < size:
            ch = self.rx.read(1)
            if not ch or ch == b"\0":
                break
            received += ch
        file.f_pos += len(received)
        return bytes(received)

    def write(self, file: OpenFile, data: bytes) -> int:
        if file is None or data is None or len(data) == 0:
            raise InvalidArgument("File and non-empty data are required")
        data = bytes(data)
        self.tx.write(data)
        file.f_pos += len(data)
        return len(data)

    def lseek(self, file: OpenFile, offset: int, whence: int) -> int:
        return super().lseek(file, offset, whence)


@dataclass(frozen=True)
class FramebufferInfo:
    """Geometry and channel order of a frame buffer."""

    width: int
    height: int
    pitch: int
    isrgb: int


class FramebufferDevice(_Device):
    """A write-only linear frame buffer of 32-bit pixels."""

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        isrgb: int = 1,
    ) -> None:
        if width <= 0 or height <= 0:
            raise InvalidArgument("Width and height must be positive")
        self.width = width
        self.height = height
        self.pitch = width * (DEFAULT_DEPTH // 8)
        self.isrgb = isrgb
        self.memory = bytearray(self.pitch * height)

    def open(self, vnode: VNode) -> OpenFile:
        return super().open(vnode)

    def close(self, file: OpenFile) -> None:
        super().close(file)

    def read(self, file: OpenFile, size: int) -> bytes:
        raise NotSupported("Frame buffer cannot be read")

    def write(self, file: OpenFile, data: bytes) -> int:
        if file is None or data is None or len(data) == 0:
            raise InvalidArgument("File and non-empty data are required")
        start = file.f_pos
        end = start + len(data)
        if end > len(self.memory):
            raise NoSpace("Write past the end of the frame buffer")
        self.memory[start:end] = data
        file.f_pos = end
        return len(data)

    def lseek(self, file: OpenFile, offset: int, whence: int) -> int:
        return super().lseek(file, offset, whence)

    def info(self) -> FramebufferInfo:
        """Return the frame buffer's geometry."""
        return FramebufferInfo(self.width, self.height, self.pitch, self.isrgb)