"""IPAM result types and their JSON output."""

from __future__ import annotations

import ipaddress
import json
import sys
from dataclasses import dataclass, field
from typing import Any, TextIO, Union

from .dns import DNS

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]

CURRENT_VERSIONS = ("0.3.0", "0.3.1", "0.4.0")
LEGACY_VERSIONS = ("", "0.1.0", "0.2.0")


def parse_cidr(text: str) -> IPInterface:
    """Parse an address with prefix length, keeping any host bits."""
    try:
        return ipaddress.ip_interface(text)
    except ValueError as exc:
        raise ValueError(f"invalid CIDR address: {text}") from exc


@dataclass
class Route:
    dst: IPInterface
    gw: IPAddress | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Route":
        gw = data.get("gw")
        return cls(parse_cidr(data["dst"]), ipaddress.ip_address(gw) if gw else None)

    def to_dict(self) -> dict[str, str]:
        out = {"dst": str(self.dst)}
        if self.gw is not None:
            out["gw"] = str(self.gw)
        return out


@dataclass
class IPConfig:
    version: str
    address: IPInterface
    gateway: IPAddress | None = None

    def to_dict(self) -> dict[str, str]:
        out = {"version": self.version, "address": str(self.address)}
        if self.gateway is not None:
            out["gateway"] = str(self.gateway)
        return out


@dataclass
class Result:
    ips: list[IPConfig] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)
    dns: DNS = field(default_factory=DNS)

    def to_dict(self, version: str) -> dict[str, Any]:
        """Return the result in the JSON layout of the given spec version."""
        if version in CURRENT_VERSIONS:
            out: dict[str, Any] = {"cniVersion": version}
            if self.ips:
                out["ips"] = [ip.to_dict() for ip in self.ips]
            if self.routes:
                out["routes"] = [r.to_dict() for r in self.routes]
            out["dns"] = self.dns.to_dict()
            return out
        if version in LEGACY_VERSIONS:
            return self._legacy(version or "0.1.0")
        raise ValueError(f"unsupported CNI result version {version!r}")

    def _legacy(self, version: str) -> dict[str, Any]:
        out: dict[str, Any] = {"cniVersion": version}
        for fam, key in (("4", "ip4"), ("6", "ip6")):
            ipc = next((ip for ip in self.ips if ip.version == fam), None)
            if ipc is None:
                continue
            entry: dict[str, Any] = {"ip": str(ipc.address)}
            if ipc.gateway is not None:
                entry["gateway"] = str(ipc.gateway)
            routes = [r.to_dict() for r in self.routes if str(r.dst.version) == fam]
            if routes:
                entry["routes"] = routes
            out[key] = entry
        if "ip4" not in out and "ip6" not in out:
            raise ValueError("cannot convert: no valid IP addresses")
        out["dns"] = self.dns.to_dict()
        return out


def print_result(result: Result, version: str, stream: TextIO | None = None) -> None:
    """Write the result as JSON in the layout of the given version."""
    stream = stream if stream is not None else sys.stdout
    json.dump(result.to_dict(version), stream, indent=4)
    stream.write("\n")