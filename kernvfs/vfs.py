"""A virtual file system layer that dispatches to mounted filesystems.

Filesystems plug in by subclassing :class:`Filesystem`,
:class:`VNodeOperations` and :class:`FileOperations`. Path lookup crosses
mount points in both directions: into a mounted root, and back out with
``..``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

MAX_FILESYSTEMS = 10


class VFSError(Exception):
    """Base class for file system errors."""


class InvalidArgument(VFSError, ValueError):
    """An argument was missing or out of range."""


class NotFound(VFSError, FileNotFoundError):
    """A path component does not exist."""


class AlreadyExists(VFSError, FileExistsError):
    """An entry with that name already exists."""


class AccessDenied(VFSError, PermissionError):
    """The operation is not allowed on this node."""


class NoSpace(VFSError):
    """A table or directory is full, or memory ran out."""


class NotSupported(VFSError, NotImplementedError):
    """The node or filesystem does not provide the operation."""


class Busy(VFSError):
    """The target is already a mount point or a mounted root."""


class NoDevice(VFSError):
    """No filesystem of that type is registered."""


class InternalError(VFSError, RuntimeError):
    """The file system tree is in an inconsistent state."""


class Whence(enum.IntEnum):
    """Reference point for :meth:`VirtualFileSystem.lseek`."""

    SET = 0
    CUR = 1
    END = 2


class OpenFlags(enum.IntFlag):
    """Flags accepted by :meth:`VirtualFileSystem.open`."""

    NONE = 0
    CREAT = 0o100


class FileOperations:
    """Operations on an open file; each default raises :class:`NotSupported`."""

    def open(self, vnode: VNode) -> OpenFile:
        raise NotSupported("open")

    def close(self, file: OpenFile) -> None:
        raise NotSupported("close")

    def read(self, file: OpenFile, size: int) -> bytes:
        raise NotSupported("read")

    def write(self, file: OpenFile, data: bytes) -> int:
        raise NotSupported("write")

    def lseek(self, file: OpenFile, offset: int, whence: int) -> int:
        raise NotSupported("lseek")


class VNodeOperations:
    """Operations on a directory node; each default raises :class:`NotSupported`."""

    def lookup(self, dir_node: VNode, name: str) -> VNode:
        raise NotSupported("lookup")

    def create(self, dir_node: VNode, name: str) -> VNode:
        raise NotSupported("create")

    def mkdir(self, dir_node: VNode, name: str) -> VNode:
        raise NotSupported("mkdir")


@dataclass(eq=False)
class VNode:
    """A node in the file system tree."""

    v_ops: Optional[VNodeOperations] = None
    f_ops: Optional[FileOperations] = None
    internal: Any = field(default=None, repr=False)
    parent: Optional[VNode] = field(default=None, repr=False)
    mount: Optional[Mount] = field(default=None, repr=False)
    parent_is_mount: bool = False


@dataclass(eq=False)
class OpenFile:
    """An open file handle."""

    vnode: Optional[VNode]
    f_ops: Optional[FileOperations] = None
    f_pos: int = 0
    flags: OpenFlags = OpenFlags.NONE


class Filesystem:
    """A filesystem type that can be mounted."""

    def __init__(self, name: str) -> None:
        self.name = name

    def setup_mount(self, mount: Mount) -> None:
        """Fill in ``mount.fs`` and ``mount.root``."""
        raise NotSupported(f"Filesystem does not support mounting: {self.name}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


@dataclass(eq=False)
class Mount:
    """A mounted filesystem and its root node."""

    fs: Optional[Filesystem] = None
    root: Optional[VNode] = None


def _split_parent(pathname: str) -> tuple[Optional[str], str]:
    """Split at the last slash: (parent path or None if no slash, base name)."""
    index = pathname.rfind("/")
    if index == -1:
        return None, pathname
    if index == 0:
        return "/", pathname[1:]
    return pathname[:index], pathname[index + 1:]


class VirtualFileSystem:
    """Registered filesystems, the root mount and the current directory."""

    def __init__(self) -> None:
        self.filesystems: list[Filesystem] = []
        self.rootfs: Optional[Mount] = None
        self.cwd: Optional[VNode] = None

    @property
    def root(self) -> VNode:
        if self.rootfs is None or self.rootfs.root is None:
            raise InternalError("Root filesystem is not mounted")
        return self.rootfs.root

    def _find_filesystem(self, name: str) -> Filesystem:
        for fs in self.filesystems:
            if fs.name == name:
                return fs
        raise NoDevice(f"Filesystem type not found: {name}")

    def register_filesystem(self, fs: Filesystem) -> None:
        """Add a filesystem type; names must be unique."""
        if fs is None or fs.name is None:
            raise InvalidArgument("Filesystem and its name are required")
        if len(self.filesystems) >= MAX_FILESYSTEMS:
            raise NoSpace("Too many filesystems registered")
        if any(existing.name == fs.name for existing in self.filesystems):
            raise AlreadyExists(f"Filesystem already registered: {fs.name}")
        self.filesystems.append(fs)

    def mount_root(self, name: str) -> Mount:
        """Mount the registered filesystem ``name`` as the global root."""
        fs = self._find_filesystem(name)
        mount = Mount(fs=fs)
        fs.setup_mount(mount)
        if mount.root is None:
            raise InternalError(f"{name} did not provide a root node")
        mount.root.parent = None
        self.rootfs = mount
        return mount

    def lookup(self, pathname: str) -> VNode:
        """Resolve ``pathname`` to a node, following mount points."""
        if pathname is None:
            raise InvalidArgument("Pathname is required")

        if pathname.startswith("/"):
            current = self.root
        else:
            if self.cwd is None:
                raise InternalError("CWD not set for relative path lookup")
            current = self.cwd

        if pathname == "/":
            return self.root
        if pathname in ("", "."):
            return current

        root = self.root
        for name in filter(None, pathname.split("/")):
            if name == ".":
                continue
            if name == "..":
                current = self._parent_of(current, root)
                continue

            if current.mount is not None:
                current = current.mount.root
            if current.v_ops is None:
                raise NotSupported("Vnode does not support lookup")
            next_node = current.v_ops.lookup(current, name)
            if next_node.mount is not None:
                next_node = next_node.mount.root
            current = next_node
        return current

    @staticmethod
    def _parent_of(node: VNode, root: VNode) -> VNode:
        if node is root:
            return root
        parent = node.parent
        if parent is None:
            raise InternalError("'..' on a non-root vnode without a parent")
        if parent.mount is not None and parent.mount.root is node:
            if parent is root:
                return root
            if parent.parent is None:
                raise InternalError("Mount directory has no parent for '..'")
            return parent.parent
        return parent

    def _resolve_parent(self, parent_path: Optional[str]) -> VNode:
        if parent_path is None:
            if self.cwd is not None:
                return self.cwd
            logger.warning("CWD not set, creating relative to root")
            return self.root
        return self.lookup(parent_path)

    def open(self, pathname: str, flags: int = OpenFlags.NONE) -> OpenFile:
        """Open a file, creating it first when ``flags`` has CREAT."""
        if pathname is None:
            raise InvalidArgument("Pathname is required")
        flags = OpenFlags(flags)
        try:
            vnode = self.lookup(pathname)
        except VFSError:
            if not flags & OpenFlags.CREAT:
                raise
            parent_path, basename = _split_parent(pathname)
            parent = self._resolve_parent(parent_path)
            if parent.v_ops is None:
                raise AccessDenied("Parent directory does not support create")
            vnode = parent.v_ops.create(parent, basename)

        if vnode.f_ops is None:
            raise NotSupported("Vnode does not support open")
        file = vnode.f_ops.open(vnode)
        file.flags = flags
        return file

    def close(self, file: OpenFile) -> None:
        """Close an open file."""
        if file is None:
            raise InvalidArgument("File is required")
        if file.f_ops is None:
            raise NotSupported("File does not support close")
        file.f_ops.close(file)

    def read(self, file: OpenFile, size: int) -> bytes:
        """Read up to ``size`` bytes from the current position."""
        if file is None or size is None or size < 0:
            raise InvalidArgument("File and a non-negative size are required")
        if size == 0:
            return b""
        if file.f_ops is None:
            raise NotSupported("File does not support read")
        return file.f_ops.read(file, size)

    def write(self, file: OpenFile, data: bytes) -> int:
        """Write ``data`` at the current position and return the count."""
        if file is None or data is None:
            raise InvalidArgument("File and data are required")
        if len(data) == 0:
            return 0
        if file.f_ops is None:
            raise NotSupported("File does not support write")
        return file.f_ops.write(file, bytes(data))

    def lseek(self, file: OpenFile, offset: int, whence: int = Whence.SET) -> int:
        """Move the file position and return the new one."""
        if file is None:
            raise InvalidArgument("File is required")
        if file.f_ops is None:
            raise NotSupported("File does not support lseek")
        return file.f_ops.lseek(file, offset, whence)

    def mkdir(self, pathname: str) -> VNode:
        """Create a directory and return its node."""
        if pathname is None:
            raise InvalidArgument("Pathname is required")
        parent_path, name = _split_parent(pathname)
        if parent_path is None:
            if self.cwd is None:
                raise InternalError("CWD not set for relative path")
            parent = self.cwd
        else:
            parent = self.lookup(parent_path)
        if not name:
            raise InvalidArgument("Empty directory name")
        if parent.v_ops is None:
            raise AccessDenied("Parent directory does not support mkdir")
        return parent.v_ops.mkdir(parent, name)

    def mknod(self, pathname: str, f_ops: FileOperations) -> VNode:
        """Create a file whose operations are ``f_ops`` (a device node)."""
        if pathname is None:
            raise InvalidArgument("Pathname is required")
        file = self.open(pathname, OpenFlags.CREAT)
        vnode = file.vnode
        vnode.f_ops = f_ops
        self.close(file)
        return vnode

    def mount(self, target_pathname: str, filesystem_name: str) -> Mount:
        """Mount a registered filesystem on an existing directory."""
        if target_pathname is None or filesystem_name is None:
            raise InvalidArgument("Target path and filesystem name are required")
        fs = self._find_filesystem(filesystem_name)
        target = self.lookup(target_pathname)
        if target.v_ops is None:
            raise NotSupported(f"Target path does not support mounting: {target_pathname}")
        if target.mount is not None or target.parent_is_mount:
            raise Busy(f"Target path is already mounted: {target_pathname}")

        new_mount = Mount(fs=fs)
        target.mount = new_mount
        try:
            fs.setup_mount(new_mount)
            if new_mount.root is None:
                raise InternalError(f"{filesystem_name} did not provide a root node")
        except VFSError:
            target.mount = None
            raise
        new_mount.root.parent = target
        return new_mount