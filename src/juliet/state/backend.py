from __future__ import annotations

import errno
import os
from pathlib import Path
import shutil
from typing import Protocol, runtime_checkable


@runtime_checkable
class RoleFileSystem(Protocol):
    """Filesystem operations the role state store is allowed to perform."""

    def is_dir(self, path: Path) -> bool: ...

    def is_file(self, path: Path) -> bool: ...

    def list_entries(self, path: Path) -> tuple[frozenset[str], frozenset[str]]:
        """Return ``(files, directories)``; anything not a directory counts as a file."""
        ...

    def make_dir(self, path: Path) -> None: ...

    def read_bytes(self, path: Path) -> bytes: ...

    def write_bytes(self, path: Path, data: bytes) -> None: ...

    def create_file(self, path: Path, data: bytes = b"") -> bool: ...

    def remove_file(self, path: Path) -> bool: ...

    def remove_tree(self, path: Path) -> None: ...


class LocalRoleFileSystem:
    """Role state operations against the real filesystem."""

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def list_entries(self, path: Path) -> tuple[frozenset[str], frozenset[str]]:
        files: set[str] = set()
        directories: set[str] = set()
        with os.scandir(path) as entries:
            for entry in entries:
                if entry.is_dir():
                    directories.add(entry.name)
                else:
                    files.add(entry.name)
        return frozenset(files), frozenset(directories)

    def make_dir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        Path(path).write_bytes(data)

    def create_file(self, path: Path, data: bytes = b"") -> bool:
        try:
            with Path(path).open("xb") as handle:
                handle.write(data)
            return True
        except FileExistsError:
            return False

    def remove_file(self, path: Path) -> bool:
        try:
            Path(path).unlink()
            return True
        except FileNotFoundError:
            return False

    def remove_tree(self, path: Path) -> None:
        target = Path(path)
        if target.is_symlink() or not target.is_dir():
            target.unlink()
            return
        shutil.rmtree(target)


class MemoryRoleFileSystem:
    """In-memory filesystem double with the same observable behaviour."""

    def __init__(self) -> None:
        self.files: dict[Path, bytes] = {}
        self.directories: set[Path] = set()

    def is_dir(self, path: Path) -> bool:
        return Path(path) in self.directories

    def is_file(self, path: Path) -> bool:
        return Path(path) in self.files

    def list_entries(self, path: Path) -> tuple[frozenset[str], frozenset[str]]:
        target = Path(path)
        if target not in self.directories:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(target))
        files = frozenset(item.name for item in self.files if item.parent == target)
        directories = frozenset(item.name for item in self.directories if item.parent == target)
        return files, directories

    def make_dir(self, path: Path) -> None:
        target = Path(path)
        for candidate in (target, *target.parents):
            if candidate in self.files:
                raise FileExistsError(errno.EEXIST, "File exists", str(candidate))
        self.directories.add(target)
        self.directories.update(target.parents)

    def read_bytes(self, path: Path) -> bytes:
        target = Path(path)
        if target in self.directories:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(target))
        try:
            return self.files[target]
        except KeyError:
            raise FileNotFoundError(errno.ENOENT, "No such file", str(target)) from None

    def write_bytes(self, path: Path, data: bytes) -> None:
        target = Path(path)
        if target in self.directories:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(target))
        if target.parent not in self.directories:
            raise FileNotFoundError(errno.ENOENT, "No such directory", str(target.parent))
        self.files[target] = bytes(data)

    def create_file(self, path: Path, data: bytes = b"") -> bool:
        target = Path(path)
        if target in self.files or target in self.directories:
            return False
        self.write_bytes(target, data)
        return True

    def remove_file(self, path: Path) -> bool:
        return self.files.pop(Path(path), None) is not None

    def remove_tree(self, path: Path) -> None:
        target = Path(path)
        if target in self.files:
            del self.files[target]
            return
        if target not in self.directories:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(target))
        self.files = {item: data for item, data in self.files.items() if target not in item.parents}
        self.directories = {
            item for item in self.directories if item != target and target not in item.parents
        }
