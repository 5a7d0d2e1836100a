"""Assembly of a complete file system tree and status reporting helpers."""

from __future__ import annotations

from typing import Optional

from .devices import FramebufferDevice, UartDevice
from .initramfs import Initramfs, populate_initramfs
from .tmpfs import Tmpfs
from .vfs import VirtualFileSystem

INITRAMFS_PATH = "/initramfs"
DEV_PATH = "/dev"
UART_PATH = "/dev/uart"
FRAMEBUFFER_PATH = "/dev/framebuffer"


def build_vfs(
    archive: Optional[bytes] = None,
    uart: Optional[UartDevice] = None,
    framebuffer: Optional[FramebufferDevice] = None,
) -> VirtualFileSystem:
    """Build the standard tree.

    A tmpfs root holds ``/initramfs``, which has the members of ``archive``,
    and ``/dev``, which has the ``uart`` and ``framebuffer`` device nodes.
    The current directory is set to the root.
    """
    vfs = VirtualFileSystem()
    vfs.register_filesystem(Tmpfs())
    vfs.mount_root("tmpfs")
    vfs.cwd = vfs.root

    vfs.mkdir(INITRAMFS_PATH)
    vfs.register_filesystem(Initramfs())
    vfs.mount(INITRAMFS_PATH, "initramfs")
    if archive is not None:
        populate_initramfs(vfs.lookup(INITRAMFS_PATH), archive)

    vfs.mkdir(DEV_PATH)
    vfs.mknod(UART_PATH, uart if uart is not None else UartDevice())
    vfs.mknod(
        FRAMEBUFFER_PATH,
        framebuffer if framebuffer is not None else FramebufferDevice(),
    )
    return vfs


def format_status(message: str, status_code: int) -> str:
    """Format a result line: ``message`` followed by success or failure text."""
    if status_code == 0:
        outcome = "0 (SUCCESS)"
    elif status_code < 0:
        outcome = f"- (FAILURE, code: -{-status_code})"
    else:
        outcome = "- (FAILURE, code: positive value)"
    return f"{message}{outcome}\r\n"