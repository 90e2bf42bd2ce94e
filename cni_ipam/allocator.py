"""Round-robin address allocation over a range set."""

from __future__ import annotations

import ipaddress
import logging
from typing import Any

from .iprange import IPAddress, IPInterface, canonicalize_ip, next_ip
from .range_set import RangeSet
from .result import IPConfig
from .store import Store

log = logging.getLogger(__name__)


def _interface(ip: IPAddress, prefixlen: int) -> IPInterface:
    return ipaddress.ip_interface(f"{ip}/{prefixlen}")


class RangeIter:
    """Walks every allocatable address of a range set once, skipping gateways.

    Yields (address with prefix, gateway) pairs.
    """

    def __init__(self, rangeset: RangeSet) -> None:
        self.rangeset = rangeset
        self.range_idx = 0
        self.cur: IPAddress | None = None
        self.start_ip: IPAddress | None = None
        self.start_range = 0
        self._done = False

    def __iter__(self) -> "RangeIter":
        return self

    def __next__(self) -> tuple[IPInterface, IPAddress | None]:
        if self._done:
            raise StopIteration
        while True:
            r = self.rangeset[self.range_idx]
            if self.cur is None:
                # First step from the start of a range: the start is inclusive.
                self.cur = r.range_start
                self.start_ip = self.cur
            else:
                if self.cur == r.range_end:
                    self.range_idx = (self.range_idx + 1) % len(self.rangeset)
                    r = self.rangeset[self.range_idx]
                    self.cur = r.range_start
                else:
                    self.cur = next_ip(self.cur)

                if self.start_ip is None:
                    self.start_ip = self.cur
                elif self.range_idx == self.start_range and self.cur == self.start_ip:
                    self._done = True
                    raise StopIteration

            if self.cur == r.gateway:
                continue
            return _interface(self.cur, r.subnet.network.prefixlen), r.gateway


class IPAllocator:
    """Allocates addresses from one range set, recording them in a store."""

    def __init__(self, rangeset: RangeSet, store: Store, range_id: Any) -> None:
        self.rangeset = rangeset
        self.store = store
        self.range_id = str(range_id)

    def get(self, id: str, requested_ip: Any = None) -> IPConfig:
        """Reserve an address for id, the requested one if given."""
        with self.store:
            reserved: IPInterface | None = None
            gateway: IPAddress | None = None

            if requested_ip is not None:
                ip = canonicalize_ip(requested_ip)
                r = self.rangeset.range_for(ip)
                if ip == r.gateway:
                    raise ValueError(f"requested ip {ip} is subnet's gateway")
                if not self.store.reserve(id, ip, self.range_id):
                    raise ValueError(
                        f"requested IP address {ip} is not available in range set {self.rangeset}"
                    )
                reserved = _interface(ip, r.subnet.network.prefixlen)
                gateway = r.gateway
            else:
                for candidate, gw in self.get_iter():
                    if self.store.reserve(id, candidate.ip, self.range_id):
                        reserved, gateway = candidate, gw
                        break

            if reserved is None:
                raise ValueError(f"no IP addresses available in range set: {self.rangeset}")

            version = "4" if reserved.version == 4 else "6"
            return IPConfig(version=version, address=reserved, gateway=gateway)

    def release(self, id: str) -> None:
        """Release every address held by id."""
        with self.store:
            self.store.release_by_id(id)

    def get_iter(self) -> RangeIter:
        """Iterator starting just after the last reserved address, if known."""
        it = RangeIter(self.rangeset)

        last: IPAddress | None = None
        try:
            last = self.store.last_reserved_ip(self.range_id)
        except FileNotFoundError:
            last = None
        except (OSError, ValueError) as exc:
            log.error("Error retrieving last reserved ip: %s", exc)
            last = None

        if last is not None and self.rangeset.contains(last):
            for idx, r in enumerate(self.rangeset):
                if r.contains(last):
                    it.range_idx = idx
                    it.start_range = idx
                    # The first step advances, so the first address returned is last + 1.
                    it.cur = canonicalize_ip(last)
                    break
        else:
            it.range_idx = 0
            it.start_range = 0
            it.start_ip = self.rangeset[0].range_start
        return it