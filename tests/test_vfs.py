import pytest

from kernvfs.vfs import (
    AccessDenied,
    AlreadyExists,
    Busy,
    FileOperations,
    Filesystem,
    InternalError,
    InvalidArgument,
    Mount,
    NoDevice,
    NoSpace,
    NotFound,
    NotSupported,
    OpenFile,
    OpenFlags,
    VirtualFileSystem,
    VNode,
    VNodeOperations,
    Whence,
)


class MemNode:
    def __init__(self, is_dir):
        self.children = {} if is_dir else None
        self.data = None if is_dir else bytearray()


class MemFileOps(FileOperations):
    def open(self, vnode):
        return OpenFile(vnode=vnode, f_ops=self)

    def close(self, file):
        file.vnode = None

    def read(self, file, size):
        data = file.vnode.internal.data
        chunk = bytes(data[file.f_pos:file.f_pos + size])
        file.f_pos += len(chunk)
        return chunk

    def write(self, file, data):
        store = file.vnode.internal.data
        store[file.f_pos:file.f_pos + len(data)] = data
        file.f_pos += len(data)
        return len(data)

    def lseek(self, file, offset, whence):
        base = {Whence.SET: 0, Whence.CUR: file.f_pos,
                Whence.END: len(file.vnode.internal.data)}[Whence(whence)]
        file.f_pos = base + offset
        return file.f_pos


FILE_OPS = MemFileOps()


class MemVNodeOps(VNodeOperations):
    def lookup(self, dir_node, name):
        children = dir_node.internal.children
        if children is None:
            raise AccessDenied(name)
        if name not in children:
            raise NotFound(name)
        return children[name]

    def _add(self, dir_node, name, is_dir):
        children = dir_node.internal.children
        if name in children:
            raise AlreadyExists(name)
        node = VNode(v_ops=self, f_ops=FILE_OPS, internal=MemNode(is_dir), parent=dir_node)
        children[name] = node
        return node

    def create(self, dir_node, name):
        return self._add(dir_node, name, False)

    def mkdir(self, dir_node, name):
        return self._add(dir_node, name, True)


DIR_OPS = MemVNodeOps()


class MemFS(Filesystem):
    def __init__(self, name="memfs"):
        super().__init__(name)

    def setup_mount(self, mount):
        mount.fs = self
        mount.root = VNode(v_ops=DIR_OPS, f_ops=FILE_OPS,
                           internal=MemNode(True), parent_is_mount=True)


@pytest.fixture
def vfs():
    v = VirtualFileSystem()
    v.register_filesystem(MemFS())
    v.mount_root("memfs")
    return v


def test_register_duplicate_name():
    v = VirtualFileSystem()
    v.register_filesystem(MemFS("a"))
    with pytest.raises(AlreadyExists):
        v.register_filesystem(MemFS("a"))


def test_register_limit():
    v = VirtualFileSystem()
    for i in range(10):
        v.register_filesystem(MemFS(f"fs{i}"))
    with pytest.raises(NoSpace):
        v.register_filesystem(MemFS("extra"))
    assert len(v.filesystems) == 10


def test_register_requires_name():
    v = VirtualFileSystem()
    with pytest.raises(InvalidArgument):
        v.register_filesystem(MemFS(None))


def test_mount_root_unknown():
    v = VirtualFileSystem()
    with pytest.raises(NoDevice):
        v.mount_root("nothing")


def test_lookup_root(vfs):
    assert vfs.lookup("/") is vfs.rootfs.root
    assert vfs.rootfs.root.parent is None


def test_relative_lookup_without_cwd(vfs):
    with pytest.raises(InternalError):
        vfs.lookup("foo")


def test_relative_lookup_with_cwd(vfs):
    d = vfs.mkdir("/dir")
    vfs.cwd = d
    assert vfs.lookup(".") is d
    assert vfs.lookup("") is d
    created = vfs.mkdir("sub")
    assert vfs.lookup("sub") is created
    assert vfs.lookup("/dir/sub") is created


def test_lookup_not_found(vfs):
    with pytest.raises(NotFound):
        vfs.lookup("/nosuchfile.txt")


def test_mkdir_and_nested_lookup(vfs):
    mydir = vfs.mkdir("/mydir")
    assert vfs.lookup("/mydir") is mydir
    assert vfs.lookup("//mydir//") is mydir
    assert vfs.lookup("/mydir/.") is mydir


def test_mkdir_existing(vfs):
    vfs.mkdir("/mydir")
    with pytest.raises(AlreadyExists):
        vfs.mkdir("/mydir")


def test_mkdir_empty_name(vfs):
    with pytest.raises(InvalidArgument):
        vfs.mkdir("/")
    vfs.mkdir("/a")
    with pytest.raises(InvalidArgument):
        vfs.mkdir("/a/")


def test_mkdir_relative_without_cwd(vfs):
    with pytest.raises(InternalError):
        vfs.mkdir("dirname")


def test_mkdir_missing_parent(vfs):
    with pytest.raises(NotFound):
        vfs.mkdir("/missing/child")


def test_open_without_create_fails(vfs):
    with pytest.raises(NotFound):
        vfs.open("/mydir/testfile.txt")


def test_open_create_write_seek_read(vfs):
    vfs.mkdir("/mydir")
    f = vfs.open("/mydir/testfile.txt", OpenFlags.CREAT)
    assert f.flags == OpenFlags.CREAT
    data = b"Hello tmpfs!"
    assert vfs.write(f, data) == len(data)
    assert vfs.lseek(f, 0, Whence.SET) == 0
    assert vfs.read(f, len(data)) == data
    vfs.close(f)

    again = vfs.open("/mydir/testfile.txt", OpenFlags.CREAT)
    assert vfs.read(again, 100) == data
    assert vfs.lookup("/mydir/testfile.txt") is again.vnode


def test_open_create_relative_falls_back_to_root(vfs):
    f = vfs.open("rootfile", OpenFlags.CREAT)
    assert vfs.lookup("/rootfile") is f.vnode


def test_read_write_edge_cases(vfs):
    f = vfs.open("/x", OpenFlags.CREAT)
    assert vfs.write(f, b"") == 0
    assert vfs.read(f, 0) == b""
    with pytest.raises(InvalidArgument):
        vfs.read(None, 1)
    with pytest.raises(InvalidArgument):
        vfs.write(f, None)
    with pytest.raises(InvalidArgument):
        vfs.close(None)


def test_file_without_ops(vfs):
    f = OpenFile(vnode=None)
    with pytest.raises(NotSupported):
        vfs.close(f)
    with pytest.raises(NotSupported):
        vfs.read(f, 1)
    with pytest.raises(NotSupported):
        vfs.write(f, b"a")
    with pytest.raises(NotSupported):
        vfs.lseek(f, 0)


def test_base_operations_raise():
    node = VNode()
    with pytest.raises(NotSupported):
        VNodeOperations().lookup(node, "a")
    with pytest.raises(NotSupported):
        FileOperations().open(node)
    with pytest.raises(NotSupported):
        Filesystem("x").setup_mount(Mount())


def test_mount_hides_and_exposes(vfs):
    vfs.mkdir("/mountpointdir")
    f = vfs.open("/mountpointdir/pre_mount.txt", OpenFlags.CREAT)
    vfs.write(f, b"Original FS data!")
    vfs.close(f)

    vfs.register_filesystem(MemFS("other"))
    mount = vfs.mount("/mountpointdir", "other")
    assert mount.root.parent is vfs.lookup("/").internal.children["mountpointdir"]

    with pytest.raises(NotFound):
        vfs.open("/mountpointdir/pre_mount.txt")

    f = vfs.open("/mountpointdir/on_mounted.txt", OpenFlags.CREAT)
    vfs.write(f, b"Mounted FS data!")
    vfs.close(f)
    f = vfs.open("/mountpointdir/on_mounted.txt")
    assert vfs.read(f, 100) == b"Mounted FS data!"

    sub = vfs.mkdir("/mountpointdir/mounted_subdir")
    nested = vfs.open("/mountpointdir/mounted_subdir/nested_file.txt", OpenFlags.CREAT)
    assert nested.vnode.parent is sub
    assert vfs.lookup("/mountpointdir") is mount.root


def test_dotdot_crosses_mount(vfs):
    vfs.mkdir("/a")
    vfs.mkdir("/a/b")
    vfs.register_filesystem(MemFS("other"))
    mount = vfs.mount("/a/b", "other")
    vfs.mkdir("/a/b/c")
    assert vfs.lookup("/a/b/c/..") is mount.root
    assert vfs.lookup("/a/b/..") is vfs.lookup("/a")
    assert vfs.lookup("/..") is vfs.root
    assert vfs.lookup("/a/../..") is vfs.root


def test_mount_busy(vfs):
    vfs.mkdir("/m")
    vfs.register_filesystem(MemFS("other"))
    vfs.mount("/m", "other")
    with pytest.raises(Busy):
        vfs.mount("/m", "other")
    with pytest.raises(Busy):
        vfs.mount("/", "other")


def test_mount_unknown_fs(vfs):
    vfs.mkdir("/m")
    with pytest.raises(NoDevice):
        vfs.mount("/m", "nothing")


def test_mount_setup_failure_resets(vfs):
    vfs.mkdir("/m")
    vfs.register_filesystem(Filesystem("broken"))
    with pytest.raises(NotSupported):
        vfs.mount("/m", "broken")
    assert vfs.lookup("/").internal.children["m"].mount is None


def test_mknod_replaces_ops(vfs):
    vfs.mkdir("/dev")

    class Marker(MemFileOps):
        pass

    ops = Marker()
    node = vfs.mknod("/dev/uart", ops)
    assert vfs.lookup("/dev/uart") is node
    assert node.f_ops is ops
    f = vfs.open("/dev/uart")
    assert f.f_ops is ops


def test_create_without_vnode_ops(vfs):
    vfs.root.internal.children["plain"] = VNode(parent=vfs.root)
    with pytest.raises(NotSupported):
        vfs.lookup("/plain/x")
    with pytest.raises(AccessDenied):
        vfs.mkdir("/plain/x")


def test_whence_and_flags_values():
    assert [int(w) for w in Whence] == [0, 1, 2]
    assert OpenFlags(0) == OpenFlags.NONE