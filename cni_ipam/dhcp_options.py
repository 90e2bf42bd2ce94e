"""Decoding of DHCP options into addresses, routes and durations."""

from __future__ import annotations

import enum
import ipaddress
from datetime import timedelta
from typing import Mapping

from .result import Route

Options = Mapping[int, bytes]


class OptionCode(enum.IntEnum):
    SUBNET_MASK = 1
    ROUTER = 3
    STATIC_ROUTE = 33
    IP_ADDRESS_LEASE_TIME = 51
    RENEWAL_TIME_VALUE = 58
    REBINDING_TIME_VALUE = 59
    CLASSLESS_ROUTE_FORMAT = 121


def parse_router(opts: Options) -> ipaddress.IPv4Address | None:
    value = opts.get(OptionCode.ROUTER)
    if value is not None and len(value) == 4:
        return ipaddress.IPv4Address(bytes(value))
    return None


def classful_subnet(sn: bytes) -> ipaddress.IPv4Interface:
    """Subnet of sn with its classful default mask."""
    addr = ipaddress.IPv4Address(bytes(sn))
    first = bytes(sn)[0]
    if first < 0x80:
        prefix = 8
    elif first < 0xC0:
        prefix = 16
    elif first < 0xE0:
        prefix = 24
    else:
        prefix = 32
    return ipaddress.IPv4Interface(f"{addr}/{prefix}")


def parse_routes(opts: Options) -> list[Route]:
    """Decode option 33: pairs of destination and router."""
    opt = bytes(opts.get(OptionCode.STATIC_ROUTE, b""))
    return [
        Route(classful_subnet(opt[i:i + 4]), ipaddress.IPv4Address(opt[i + 4:i + 8]))
        for i in range(0, len(opt) - 7, 8)
    ]


def parse_cidr_routes(opts: Options) -> list[Route] | None:
    """Decode option 121 (RFC 3442); None when it is malformed."""
    routes: list[Route] = []
    opt = bytes(opts.get(OptionCode.CLASSLESS_ROUTE_FORMAT, b""))
    while len(opt) >= 5:
        width = opt[0]
        if width > 32:
            return None
        octets = (width - 1) // 8 + 1 if width > 0 else 0
        if len(opt) < 1 + octets + 4:
            return None
        sn = opt[1:octets + 1].ljust(4, b"\0")
        gw = ipaddress.IPv4Address(opt[octets + 1:octets + 5])
        dst = ipaddress.IPv4Interface(f"{ipaddress.IPv4Address(sn)}/{width}")
        routes.append(Route(dst, gw))
        opt = opt[octets + 5:]
    return routes


def parse_subnet_mask(opts: Options) -> ipaddress.IPv4Address | None:
    mask = opts.get(OptionCode.SUBNET_MASK)
    if mask is None or len(mask) != 4:
        return None
    return ipaddress.IPv4Address(bytes(mask))


def _parse_duration(opts: Options, code: OptionCode, name: str) -> timedelta:
    value = opts.get(code)
    if value is None:
        raise ValueError(f"option {name} not found")
    if len(value) != 4:
        raise ValueError(f"option {name} is not 4 bytes")
    return timedelta(seconds=int.from_bytes(value, "big"))


def parse_lease_time(opts: Options) -> timedelta:
    return _parse_duration(opts, OptionCode.IP_ADDRESS_LEASE_TIME, "LeaseTime")


def parse_renewal_time(opts: Options) -> timedelta:
    return _parse_duration(opts, OptionCode.RENEWAL_TIME_VALUE, "RenewalTime")


def parse_rebinding_time(opts: Options) -> timedelta:
    return _parse_duration(opts, OptionCode.REBINDING_TIME_VALUE, "RebindingTime")