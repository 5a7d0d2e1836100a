# kernvfs

An in-memory virtual file system in the style of a small teaching kernel. It has:

- a **VFS layer** (`kernvfs.vfs`) that resolves paths and mount points and passes
  each file operation to the file system that owns the node;
- **tmpfs** (`kernvfs.tmpfs`), a writable in-memory file system, used as the root;
- **initramfs** (`kernvfs.initramfs`), a read-only file system filled from a
  `newc` cpio archive;
- **devices** (`kernvfs.devices`): a UART device backed by binary streams and a
  frame buffer device backed by a `bytearray`, attached to paths with `mknod`;
- **cpio** helpers (`kernvfs.cpio`) that read and write `newc` archives;
- **boot image** helpers (`kernvfs.boot`) for a serial boot loader format: the
  magic `BOOT`, a little-endian 32-bit size, a little-endian 32-bit byte-sum
  checksum, then the kernel bytes;
- **system** helpers (`kernvfs.system`) that assemble the standard tree.

Only the standard library is needed.

## cpio archives

```python
from kernvfs.cpio import build_archive, list_names, read_file, file_size

archive = build_archive({"hello.txt": b"Hello!", "prog": b"\x00\x01"})

list_names(archive)               # ['hello.txt', 'prog']
read_file(archive, "hello.txt")   # b'Hello!'
file_size(archive, "prog")        # 2
```

An archive is read up to its `TRAILER!!!` entry. `iter_entries` yields a
`CpioEntry` (name, data, mode and a `size` property) for each member in order.
A header without the `070701` magic, bad hex fields or truncated data raise
`CpioError`; asking `read_file` or `file_size` for a name that is not in the
archive raises `FileNotFoundError`. `build_archive` accepts a mapping or an
iterable of `(name, data)` pairs and refuses the name `TRAILER!!!`.

## The file system

`kernvfs.system.build_vfs(archive=None, uart=None, framebuffer=None)` returns a
`VirtualFileSystem` with a tmpfs root (also set as the current directory), the
members of `archive` under `/initramfs`, and the device nodes `/dev/uart` and
`/dev/framebuffer`.

```python
import io
from kernvfs.cpio import build_archive
from kernvfs.devices import UartDevice
from kernvfs.system import build_vfs
from kernvfs.vfs import OpenFlags, Whence

uart = UartDevice(rx=io.BytesIO(b"hi"))
vfs = build_vfs(build_archive({"hello.txt": b"Hello!"}), uart=uart)

f = vfs.open("/initramfs/hello.txt")
vfs.read(f, 100)                  # b'Hello!'

g = vfs.open("/notes.txt", OpenFlags.CREAT)
vfs.write(g, b"Hello tmpfs!")
vfs.lseek(g, 0, Whence.SET)
vfs.read(g, 12)                   # b'Hello tmpfs!'
vfs.close(g)

u = vfs.open("/dev/uart")
vfs.read(u, 10)                   # b'hi'
vfs.write(u, b"out")              # written to uart.tx
```

`VirtualFileSystem` provides `register_filesystem`, `mount_root`, `lookup`,
`open`, `close`, `read`, `write`, `lseek`, `mkdir`, `mknod` and `mount`. Paths
may be absolute or relative to `cwd`; `.` and `..` are resolved, and `..` steps
back out of a mounted file system. Mounting over a directory hides what was in
it. New file system types subclass `Filesystem`, `VNodeOperations` and
`FileOperations`.

Errors are raised as subclasses of `VFSError`:

| Exception         | Raised when                                               |
|-------------------|-----------------------------------------------------------|
| `InvalidArgument` | an argument is invalid, e.g. an empty name or a bad seek  |
| `NotFound`        | a path component does not exist                           |
| `AlreadyExists`   | a name is already taken in the directory or registry      |
| `AccessDenied`    | the operation is not allowed, e.g. writing to initramfs   |
| `NoSpace`         | a directory or table is full, or a frame buffer overflows |
| `NotSupported`    | the node does not provide the operation                   |
| `Busy`            | the mount target is already a mount point or mounted root |
| `NoDevice`        | no file system of the given name is registered            |
| `InternalError`   | the tree is inconsistent, or no root/cwd is set           |

A tmpfs directory holds at most 16 entries, and names must be shorter than 32
characters. Files grow as they are written; reads past the end return fewer
bytes, and `b""` at end of file. Initramfs files can be read and seeked, but
creating, writing or making directories there raises `AccessDenied`; archive
members are added as direct children of the mount root under their full names.

The UART reads until the requested size, a NUL byte or the end of `rx`. The
frame buffer (1024×768, 32-bit pixels by default) cannot be read; `info()`
returns a `FramebufferInfo` with width, height, pitch and channel order. On both
devices seeking from the end keeps the current position.

`format_status(message, code)` formats a result line such as
`"...0 (SUCCESS)\r\n"` or `"...- (FAILURE, code: -2)\r\n"`.

## Boot images

```python
from kernvfs.boot import build_boot_image, parse_boot_image, checksum

image = build_boot_image(b"\x01\x02\x03")
parsed = parse_boot_image(image)   # BootImage(kernel=b'\x01\x02\x03', checksum=6)
checksum(b"\x01\x02\x03")          # 6
```

`parse_boot_image` raises `BootImageError` when the magic is wrong, the data is
too short, or the checksum does not match. `format_hex` gives `0x` and eight
lower-case hex digits; `format_dec` gives decimal digits, and the empty string
for zero.

## What it does not do

This is a library only: it has no command-line tool, talks to no real serial
port or display, and does not load or run the programs it stores. There is no
unmounting, no deleting of files or directories, and nothing is persisted
beyond the objects in memory.

## Running the tests

The tests use pytest, declared in the `test` extra: `pip install .[test]`, then
`pytest`.