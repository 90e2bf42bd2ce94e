"""Storage interface for reservations, with an in-memory implementation."""

from __future__ import annotations

import abc
from typing import Any

from .iprange import IPAddress


class Store(abc.ABC):
    """Where reserved addresses are recorded."""

    @abc.abstractmethod
    def lock(self) -> None: ...

    @abc.abstractmethod
    def unlock(self) -> None: ...

    @abc.abstractmethod
    def close(self) -> None: ...

    @abc.abstractmethod
    def reserve(self, id: str, ip: IPAddress, range_id: str) -> bool:
        """Reserve ip for id; False if it is already taken."""

    @abc.abstractmethod
    def last_reserved_ip(self, range_id: str) -> IPAddress | None:
        """Last reserved address; FileNotFoundError if none was recorded."""

    @abc.abstractmethod
    def release(self, ip: IPAddress) -> None: ...

    @abc.abstractmethod
    def release_by_id(self, id: str) -> None: ...

    def __enter__(self) -> "Store":
        self.lock()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unlock()


class MemoryStore(Store):
    """A store kept in dictionaries."""

    def __init__(
        self,
        ip_map: dict[str, str] | None = None,
        last_reserved: dict[str, IPAddress | None] | None = None,
    ) -> None:
        self.ip_map = ip_map if ip_map is not None else {}
        self.last_reserved = last_reserved if last_reserved is not None else {}

    def lock(self) -> None:
        pass

    def unlock(self) -> None:
        pass

    def close(self) -> None:
        pass

    def reserve(self, id: str, ip: IPAddress, range_id: str) -> bool:
        key = str(ip)
        if key in self.ip_map:
            return False
        self.ip_map[key] = id
        self.last_reserved[range_id] = ip
        return True

    def last_reserved_ip(self, range_id: str) -> IPAddress | None:
        try:
            return self.last_reserved[range_id]
        except KeyError:
            raise FileNotFoundError(range_id) from None

    def release(self, ip: IPAddress) -> None:
        self.ip_map.pop(str(ip), None)

    def release_by_id(self, id: str) -> None:
        for key in [k for k, v in self.ip_map.items() if v == id]:
            del self.ip_map[key]