"""Disk-backed reservation store: one file per reserved address."""

from __future__ import annotations

import fcntl
import ipaddress
import os
import sys
from typing import Any

from .iprange import IPAddress
from .store import Store

LAST_IP_FILE_PREFIX = "last_reserved_ip."
DEFAULT_DATA_DIR = "/var/lib/cni/networks"


class FileLock:
    """An exclusive flock on a file, or on a "lock" file inside a directory."""

    def __init__(self, lock_path: str) -> None:
        if os.path.isdir(lock_path):
            lock_path = os.path.join(lock_path, "lock")
        elif not os.path.exists(lock_path):
            os.stat(lock_path)  # raises FileNotFoundError
        self.path = lock_path
        self._fd: int | None = os.open(lock_path, os.O_CREAT | os.O_RDONLY, 0o644)

    def _require_fd(self) -> int:
        if self._fd is None:
            raise ValueError("lock is closed")
        return self._fd

    def lock(self) -> None:
        fcntl.flock(self._require_fd(), fcntl.LOCK_EX)

    def unlock(self) -> None:
        fcntl.flock(self._require_fd(), fcntl.LOCK_UN)

    def close(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> "FileLock":
        self.lock()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unlock()


def get_escaped_path(data_dir: str, fname: str) -> str:
    """Path of fname inside data_dir, with ':' made safe on Windows."""
    if sys.platform == "win32":
        fname = fname.replace(":", "_")
    return os.path.join(data_dir, fname)


class DiskStore(Store):
    """Store that keeps one file per address, holding the owner's id."""

    def __init__(self, network: str, data_dir: str = "") -> None:
        directory = os.path.join(data_dir or DEFAULT_DATA_DIR, network)
        os.makedirs(directory, mode=0o755, exist_ok=True)
        self._file_lock = FileLock(directory)
        self.data_dir = directory

    def lock(self) -> None:
        self._file_lock.lock()

    def unlock(self) -> None:
        self._file_lock.unlock()

    def close(self) -> None:
        self._file_lock.close()

    def reserve(self, id: str, ip: IPAddress, range_id: str) -> bool:
        fname = get_escaped_path(self.data_dir, str(ip))
        try:
            fd = os.open(fname, os.O_RDWR | os.O_EXCL | os.O_CREAT, 0o644)
        except FileExistsError:
            return False
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(id.strip())
        except OSError:
            try:
                os.remove(fname)
            except OSError:
                pass
            raise
        ipfile = get_escaped_path(self.data_dir, LAST_IP_FILE_PREFIX + range_id)
        with open(ipfile, "w", encoding="utf-8") as f:
            f.write(str(ip))
        return True

    def last_reserved_ip(self, range_id: str) -> IPAddress | None:
        ipfile = get_escaped_path(self.data_dir, LAST_IP_FILE_PREFIX + range_id)
        with open(ipfile, encoding="utf-8") as f:
            data = f.read()
        try:
            return ipaddress.ip_address(data)
        except ValueError:
            return None

    def release(self, ip: IPAddress) -> None:
        os.remove(get_escaped_path(self.data_dir, str(ip)))

    def release_by_id(self, id: str) -> None:
        """Remove every file owned by id; errors are ignored to free as much as possible."""
        wanted = id.strip()
        for root, _dirs, files in os.walk(self.data_dir):
            for name in files:
                path = os.path.join(root, name)
                try:
                    with open(path, encoding="utf-8") as f:
                        owner = f.read().strip()
                    if owner == wanted:
                        os.remove(path)
                except (OSError, UnicodeDecodeError):
                    continue