"""An in-memory filesystem with files and directories."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from .vfs import (
    AccessDenied,
    AlreadyExists,
    FileOperations,
    Filesystem,
    InvalidArgument,
    Mount,
    NoSpace,
    NotFound,
    OpenFile,
    OpenFlags,
    VNode,
    VNodeOperations,
    Whence,
)

MAX_CHILDREN = 16
MAX_FILE_NAME = 32
DEFAULT_FILE_SIZE = 4096


class NodeType(enum.Enum):
    """Kind of filesystem node."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(eq=False)
class TmpfsNode:
    """Filesystem-private state of a tmpfs node."""

    name: str
    type: NodeType
    parent: Optional[TmpfsNode] = field(default=None, repr=False)
    data: bytearray = field(default_factory=bytearray, repr=False)
    capacity: int = 0
    children: list[VNode] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.type is NodeType.FILE and self.capacity == 0:
            self.capacity = DEFAULT_FILE_SIZE

    @property
    def size(self) -> int:
        return len(self.data)


def _node_of(file: OpenFile):
    if file is None or file.vnode is None or file.vnode.internal is None:
        raise InvalidArgument("File is not bound to a node")
    return file.vnode.internal


def _new_position(file: OpenFile, size: int, offset: int, whence: int) -> int:
    try:
        whence = Whence(whence)
    except ValueError as exc:
        raise InvalidArgument(f"Invalid whence: {whence}") from exc
    if whence is Whence.SET:
        position = offset
    elif whence is Whence.CUR:
        position = file.f_pos + offset
    else:
        position = size + offset
    if position < 0:
        raise InvalidArgument("Negative position not allowed")
    return position


class TmpfsFileOperations(FileOperations):
    """File operations on tmpfs nodes."""

    def open(self, vnode: VNode) -> OpenFile:
        if vnode is None:
            raise InvalidArgument("Vnode is required")
        return OpenFile(vnode=vnode, f_ops=vnode.f_ops, f_pos=0)

    def close(self, file: OpenFile) -> None:
        if file is None:
            raise InvalidArgument("File is required")
        file.vnode = None
        file.f_pos = 0
        file.f_ops = None
        file.flags = OpenFlags.NONE

    def read(self, file: OpenFile, size: int) -> bytes:
        node = _node_of(file)
        if size is None or size < 0:
            raise InvalidArgument("Size must be non-negative")
        if size == 0:
            return b""
        if node.type is not NodeType.FILE:
            raise AccessDenied("Cannot read a directory")
        if file.f_pos >= node.size:
            return b""
        chunk = bytes(node.data[file.f_pos:file.f_pos + size])
        file.f_pos += len(chunk)
        return chunk

    def write(self, file: OpenFile, data: bytes) -> int:
        node = _node_of(file)
        if data is None:
            raise InvalidArgument("Data is required")
        if len(data) == 0:
            return 0
        if node.type is not NodeType.FILE:
            raise AccessDenied("Cannot write to a directory")

        start = file.f_pos
        end = start + len(data)
        if end > node.capacity:
            capacity = node.capacity or DEFAULT_FILE_SIZE
            while capacity < end:
                capacity *= 2
            node.capacity = max(capacity, node.capacity)
        if start > node.size:
            node.data.extend(bytes(start - node.size))
        node.data[start:end] = data
        file.f_pos = end
        return len(data)

    def lseek(self, file: OpenFile, offset: int, whence: int) -> int:
        node = _node_of(file)
        if node.type is not NodeType.FILE:
            raise InvalidArgument("lseek on a non-file")
        file.f_pos = _new_position(file, node.size, offset, whence)
        return file.f_pos


class TmpfsVNodeOperations(VNodeOperations):
    """Directory operations on tmpfs nodes."""

    def lookup(self, dir_node: VNode, name: str) -> VNode:
        if dir_node is None or dir_node.internal is None or name is None:
            raise InvalidArgument("Directory node and name are required")
        parent = dir_node.internal
        if parent.type is not NodeType.DIRECTORY:
            raise AccessDenied("Cannot look up in a non-directory")
        for child in parent.children:
            if child.internal.name == name:
                return child
        raise NotFound(f"{name}: No such file or directory")

    def create(self, dir_node: VNode, name: str) -> VNode:
        return self._add(dir_node, name, NodeType.FILE)

    def mkdir(self, dir_node: VNode, name: str) -> VNode:
        return self._add(dir_node, name, NodeType.DIRECTORY)

    def _add(self, dir_node: VNode, name: str, node_type: NodeType) -> VNode:
        if dir_node is None or dir_node.internal is None or not name:
            raise InvalidArgument("Directory node and a non-empty name are required")
        parent = dir_node.internal
        if parent.type is not NodeType.DIRECTORY:
            raise AccessDenied("Cannot create in a non-directory")
        if len(name) >= MAX_FILE_NAME:
            raise InvalidArgument(f"Name too long: {name}")
        if any(child.internal.name == name for child in parent.children):
            raise AlreadyExists(f"{name}: already exists")
        if len(parent.children) >= MAX_CHILDREN:
            raise NoSpace("Directory full")

        vnode = VNode(
            v_ops=TMPFS_VNODE_OPS,
            f_ops=TMPFS_FILE_OPS,
            internal=TmpfsNode(name, node_type, parent=parent),
            parent=dir_node,
            mount=dir_node.mount,
            parent_is_mount=False,
        )
        parent.children.append(vnode)
        return vnode


TMPFS_FILE_OPS = TmpfsFileOperations()
TMPFS_VNODE_OPS = TmpfsVNodeOperations()


class Tmpfs(Filesystem):
    """The tmpfs filesystem type."""

    def __init__(self, name: str = "tmpfs") -> None:
        super().__init__(name)

    def setup_mount(self, mount: Mount) -> None:
        if mount is None:
            raise InvalidArgument("Mount is required")
        mount.fs = self
        mount.root = VNode(
            v_ops=TMPFS_VNODE_OPS,
            f_ops=TMPFS_FILE_OPS,
            internal=TmpfsNode("/", NodeType.DIRECTORY),
            mount=None,
            parent_is_mount=True,
        )