"""Loading of the host-local IPAM configuration."""

from __future__ import annotations

import ipaddress
import json
from dataclasses import dataclass, field
from typing import Any

from .iprange import IPAddress, Range, canonicalize_ip
from .range_set import RangeSet
from .result import LEGACY_VERSIONS, Route


@dataclass
class IPAMConfig:
    name: str = ""
    type: str = ""
    routes: list[Route] = field(default_factory=list)
    data_dir: str = ""
    resolv_conf: str = ""
    ranges: list[RangeSet] = field(default_factory=list)
    ip_args: list[IPAddress] = field(default_factory=list)


_TRUE = ("1", "true")
_FALSE = ("0", "false")


def parse_env_args(env_args: str) -> IPAddress | None:
    """Parse CNI_ARGS ("K=V;K=V") and return the requested IP, if any."""
    if not env_args:
        return None
    requested: IPAddress | None = None
    ignore_unknown = False
    unknown: list[str] = []
    for pair in env_args.split(";"):
        kv = pair.split("=")
        if len(kv) != 2:
            raise ValueError(f"ARGS: invalid pair {pair!r}")
        key, value = kv
        if key == "IP":
            if value:
                try:
                    requested = ipaddress.ip_address(value)
                except ValueError as exc:
                    raise ValueError(f"ARGS: error parsing value of pair {pair!r}: {exc}") from None
        elif key == "IgnoreUnknown":
            low = value.lower()
            if low in _TRUE:
                ignore_unknown = True
            elif low in _FALSE:
                ignore_unknown = False
            else:
                raise ValueError(f"ARGS: error parsing value of pair {pair!r}: boolean unmarshal error")
        else:
            unknown.append(pair)
    if unknown and not ignore_unknown:
        raise ValueError(f"ARGS: unknown args {unknown!r}")
    return requested


def _range_sets(items: Any) -> list[RangeSet]:
    return [RangeSet(Range.from_dict(r) for r in rs) for rs in items or []]


def load_ipam_config(data: bytes | str, env_args: str = "") -> tuple[IPAMConfig, str]:
    """Parse and validate the network configuration; return it and its CNI version."""
    net = json.loads(data)
    if not isinstance(net, dict):
        raise ValueError("network configuration is not a JSON object")
    ipam = net.get("ipam")
    if not ipam:
        raise ValueError("IPAM config missing 'ipam' key")
    cni_version = net.get("cniVersion") or ""

    conf = IPAMConfig(
        type=ipam.get("type") or "",
        routes=[Route.from_dict(r) for r in ipam.get("routes") or []],
        data_dir=ipam.get("dataDir") or "",
        resolv_conf=ipam.get("resolvConf") or "",
        ranges=_range_sets(ipam.get("ranges")),
    )

    requested = parse_env_args(env_args)
    if requested is not None:
        conf.ip_args = [requested]

    cni_args = (net.get("args") or {}).get("cni") or {}
    for text in cni_args.get("ips") or []:
        conf.ip_args.append(ipaddress.ip_address(text))

    try:
        conf.ip_args = [canonicalize_ip(a) for a in conf.ip_args]
    except ValueError as exc:
        raise ValueError(f"cannot understand ip: {exc}") from None

    # An old-style single range comes before the listed ones.
    if ipam.get("subnet"):
        conf.ranges.insert(0, RangeSet([Range.from_dict(ipam)]))

    runtime_ranges = _range_sets((net.get("runtimeConfig") or {}).get("ipRanges"))
    if runtime_ranges:
        conf.ranges = runtime_ranges + conf.ranges

    if not conf.ranges:
        raise ValueError("no IP ranges specified")

    num_v4 = num_v6 = 0
    for i, rs in enumerate(conf.ranges):
        try:
            rs.canonicalize()
        except ValueError as exc:
            raise ValueError(f"invalid range set {i}: {exc}") from None
        if rs[0].range_start.version == 4:
            num_v4 += 1
        else:
            num_v6 += 1

    if (num_v4 > 1 or num_v6 > 1) and cni_version in LEGACY_VERSIONS:
        raise ValueError(
            f"CNI version {cni_version} does not support more than 1 address per family"
        )

    for i, p1 in enumerate(conf.ranges[:-1]):
        for j, p2 in enumerate(conf.ranges[i + 1:]):
            if p1.overlaps(p2):
                raise ValueError(f"range set {i} overlaps with {i + j + 1}")

    conf.name = net.get("name") or ""
    return conf, cni_version