[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernvfs"
version = "0.1.0"
description = "A small in-memory virtual file system with tmpfs, an initramfs from newc cpio archives, and character devices"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "vfs",
    "tmpfs",
    "initramfs",
    "cpio",
    "filesystem",
    "mount",
    "bootloader",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: System :: Archiving",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kernvfs"]

[tool.hatch.build.targets.sdist]
include = ["kernvfs", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
