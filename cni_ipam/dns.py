"""DNS settings and resolv.conf parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DNS:
    """DNS configuration as carried in an IPAM result."""

    nameservers: list[str] = field(default_factory=list)
    domain: str = ""
    search: list[str] = field(default_factory=list)
    options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty fields."""
        out: dict[str, Any] = {}
        if self.nameservers:
            out["nameservers"] = list(self.nameservers)
        if self.domain:
            out["domain"] = self.domain
        if self.search:
            out["search"] = list(self.search)
        if self.options:
            out["options"] = list(self.options)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DNS":
        """Build from the JSON form."""
        data = data or {}
        return cls(
            nameservers=list(data.get("nameservers") or []),
            domain=data.get("domain") or "",
            search=list(data.get("search") or []),
            options=list(data.get("options") or []),
        )

    def is_empty(self) -> bool:
        return not (self.nameservers or self.domain or self.search or self.options)


def parse_resolv_conf(filename: str) -> DNS:
    """Parse a resolv.conf file into a DNS object."""
    dns = DNS()
    with open(filename, encoding="utf-8") as fp:
        for raw in fp:
            line = raw.strip()
            if not line or line[0] in "#;":
                continue
            fields = line.split()
            if len(fields) < 2:
                continue
            key = fields[0]
            if key == "nameserver":
                dns.nameservers.append(fields[1])
            elif key == "domain":
                dns.domain = fields[1]
            elif key == "search":
                dns.search.extend(fields[1:])
            elif key == "options":
                dns.options.extend(fields[1:])
    return dns