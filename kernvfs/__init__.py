"""In-memory virtual file system with tmpfs, initramfs, devices, cpio and boot image support."""

__version__ = "0.1.0"

__all__ = ["boot", "cpio", "devices", "initramfs", "system", "tmpfs", "vfs"]