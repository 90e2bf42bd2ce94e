"""A set of ranges of one address family."""

from __future__ import annotations

from typing import Any

from .iprange import Range, canonicalize_ip


class RangeSet(list):
    """A list of Range objects allocated from as one pool."""

    def contains(self, addr: Any) -> bool:
        try:
            self.range_for(addr)
        except ValueError:
            return False
        return True

    def range_for(self, addr: Any) -> Range:
        """Return the range holding addr, or raise ValueError."""
        addr = canonicalize_ip(addr)
        for r in self:
            if r.contains(addr):
                return r
        raise ValueError(f"{addr} not in range set {self}")

    def overlaps(self, other: "RangeSet") -> bool:
        return any(r.overlaps(r1) for r in self for r1 in other)

    def canonicalize(self) -> None:
        """Canonicalize every range and reject mixed or overlapping sets."""
        if not self:
            raise ValueError("empty range set")
        family = None
        for r in self:
            r.canonicalize()
            if family is None:
                family = r.range_start.version
            elif family != r.range_start.version:
                raise ValueError("mixed address families")
        for i, r1 in enumerate(self):
            for r2 in self[i + 1:]:
                if r1.overlaps(r2):
                    raise ValueError(f"subnets {r1} and {r2} overlap")

    def __str__(self) -> str:
        return ",".join(str(r) for r in self)