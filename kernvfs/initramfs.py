"""A read-only filesystem filled from a cpio archive."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .cpio import iter_entries
from .tmpfs import NodeType, TmpfsFileOperations, TmpfsVNodeOperations
from .vfs import AccessDenied, Filesystem, InvalidArgument, Mount, OpenFile, VNode


@dataclass(eq=False)
class InitramfsNode:
    """Filesystem-private state of an initramfs node."""

    name: str
    type: NodeType
    parent: Optional[InitramfsNode] = field(default=None, repr=False)
    data: bytes = field(default=b"", repr=False)
    children: list[VNode] = field(default_factory=list, repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


class InitramfsFileOperations(TmpfsFileOperations):
    """File operations on initramfs nodes; writing is refused."""

    def open(self, vnode: VNode):
        """Open ``vnode`` positioned at its start."""
        return super().open(vnode)

    def close(self, file: OpenFile):
        """Release the handle's state."""
        return super().close(file)

    def read(self, file: OpenFile, size: int):
        """Read up to ``size`` bytes from the current position."""
        return super().read(file, size)

    def write(self, file: OpenFile, data: bytes) -> int:
        raise AccessDenied("initramfs is read-only")

    def lseek(self, file: OpenFile, offset: int, whence):
        """Move the file position and return the new one."""
        return super().lseek(file, offset, whence)


class InitramfsVNodeOperations(TmpfsVNodeOperations):
    """Directory operations on initramfs nodes; creating is refused."""

    def lookup(self, dir_node: VNode, name: str) -> VNode:
        """Find the child called ``name`` in ``dir_node``."""
        return super().lookup(dir_node, name)

    def create(self, dir_node: VNode, name: str) -> VNode:
        raise AccessDenied("initramfs is read-only")

    def mkdir(self, dir_node: VNode, name: str) -> VNode:
        raise AccessDenied("initramfs is read-only")


INITRAMFS_FILE_OPS = InitramfsFileOperations()
INITRAMFS_VNODE_OPS = InitramfsVNodeOperations()


class Initramfs(Filesystem):
    """The initramfs filesystem type."""

    def __init__(self, name: str = "initramfs") -> None:
        super().__init__(name)

    def setup_mount(self, mount: Mount) -> None:
        if mount is None:
            raise InvalidArgument("Mount is required")
        mount.fs = self
        mount.root = VNode(
            v_ops=INITRAMFS_VNODE_OPS,
            f_ops=INITRAMFS_FILE_OPS,
            internal=InitramfsNode("", NodeType.DIRECTORY),
            mount=None,
            parent_is_mount=True,
        )


def populate_initramfs(root: VNode, archive: bytes) -> list[VNode]:
    """Add every member of ``archive`` as a file under ``root``.

    Returns the new nodes in archive order.
    """
    if root is None or not isinstance(root.internal, InitramfsNode):
        raise InvalidArgument("Root must be an initramfs node")
    directory = root.internal
    directory.type = NodeType.DIRECTORY
    added = []
    for entry in iter_entries(archive):
        vnode = VNode(
            v_ops=INITRAMFS_VNODE_OPS,
            f_ops=INITRAMFS_FILE_OPS,
            internal=InitramfsNode(
                entry.name, NodeType.FILE, parent=directory, data=entry.data
            ),
            parent=root,
            mount=None,
            parent_is_mount=False,
        )
        directory.children.append(vnode)
        added.append(vnode)
    return added