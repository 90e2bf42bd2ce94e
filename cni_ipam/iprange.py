"""A single allocatable IP range inside a subnet."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]


def canonicalize_ip(ip: Any) -> IPAddress:
    """Return the address in standard form; v4-mapped addresses become IPv4."""
    try:
        if isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            addr = ip
        elif isinstance(ip, (bytes, bytearray)):
            addr = ipaddress.ip_address(bytes(ip))
        elif isinstance(ip, str):
            addr = ipaddress.ip_address(ip)
        else:
            raise ValueError
    except ValueError:
        raise ValueError(f"IP {ip} not v4 nor v6") from None
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def next_ip(ip: IPAddress) -> IPAddress:
    """Return the address after ip, wrapping at the top of the family."""
    size = 1 << ip.max_prefixlen
    return type(ip)((int(ip) + 1) % size)


def last_ip(subnet: IPInterface) -> IPAddress:
    """Last address of a subnet, excluding the broadcast for IPv4."""
    end = subnet.network.broadcast_address
    if end.version == 4:
        end = end - 1
    return end


def _opt_ip(value: Any) -> IPAddress | None:
    return ipaddress.ip_address(value) if value else None


@dataclass
class Range:
    subnet: IPInterface | None
    range_start: IPAddress | None = None
    range_end: IPAddress | None = None
    gateway: IPAddress | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Range":
        subnet = data.get("subnet")
        return cls(
            subnet=ipaddress.ip_interface(subnet) if subnet else None,
            range_start=_opt_ip(data.get("rangeStart")),
            range_end=_opt_ip(data.get("rangeEnd")),
            gateway=_opt_ip(data.get("gateway")),
        )

    def canonicalize(self) -> None:
        """Check the range and fill in missing start, end and gateway."""
        if self.subnet is None:
            raise ValueError("IP <nil> not v4 nor v6")
        ip = canonicalize_ip(self.subnet.ip)
        prefix = self.subnet.network.prefixlen
        if ip.version != self.subnet.version:
            prefix -= 96
        self.subnet = ipaddress.ip_interface(f"{ip}/{prefix}")
        network = self.subnet.network

        if prefix > ip.max_prefixlen - 2:
            raise ValueError(f"Network {self.subnet} too small to allocate from")

        if ip != network.network_address:
            raise ValueError(
                "Network has host bits set. For a subnet mask of length "
                f"{prefix} the network address is {network.network_address}"
            )

        if self.gateway is None:
            self.gateway = next_ip(ip)
        else:
            self.gateway = canonicalize_ip(self.gateway)
            if self.gateway.version != ip.version or self.gateway not in network:
                raise ValueError(f"gateway {self.gateway} not in network {network}")

        if self.range_start is not None:
            self.range_start = canonicalize_ip(self.range_start)
            if not self.contains(self.range_start):
                raise ValueError(f"RangeStart {self.range_start} not in network {self.subnet}")
        else:
            self.range_start = next_ip(ip)

        if self.range_end is not None:
            self.range_end = canonicalize_ip(self.range_end)
            if not self.contains(self.range_end):
                raise ValueError(f"RangeEnd {self.range_end} not in network {self.subnet}")
        else:
            self.range_end = last_ip(self.subnet)

    def contains(self, addr: Any) -> bool:
        """True if addr is an allocatable address of this range."""
        if self.subnet is None:
            return False
        try:
            addr = canonicalize_ip(addr)
        except ValueError:
            return False
        if addr.version != self.subnet.version or addr not in self.subnet.network:
            return False
        start, end = self.range_start, self.range_end
        if start is not None and start.version == addr.version and addr < start:
            return False
        if end is not None and end.version == addr.version and addr > end:
            return False
        return True

    def overlaps(self, other: "Range") -> bool:
        """True if the two ranges share any address."""
        if self.range_start is None or other.range_start is None:
            return False
        if self.range_start.version != other.range_start.version:
            return False
        return (
            self.contains(other.range_start)
            or self.contains(other.range_end)
            or other.contains(self.range_start)
            or other.contains(self.range_end)
        )

    def __str__(self) -> str:
        return f"{self.range_start}-{self.range_end}"