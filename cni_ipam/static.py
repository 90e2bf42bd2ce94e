"""The static IPAM plugin: hands out addresses fixed in the configuration."""

from __future__ import annotations

import ipaddress
import json
from dataclasses import dataclass, field
from typing import Any, Sequence, TextIO

from .dns import DNS
from .iprange import IPAddress, IPInterface, canonicalize_ip
from .plugin import ERR_GENERIC, CmdArgs, PluginError, plugin_main
from .result import LEGACY_VERSIONS, IPConfig, Result, Route, parse_cidr, print_result


@dataclass
class Address:
    address_str: str
    address: IPInterface
    version: str
    gateway: IPAddress | None = None


@dataclass
class StaticIPAMConfig:
    name: str = ""
    type: str = ""
    routes: list[Route] = field(default_factory=list)
    addresses: list[Address] = field(default_factory=list)
    dns: DNS = field(default_factory=DNS)


def _parse_address(text: str, index: int) -> IPInterface:
    if "/" not in text:
        raise ValueError(f"invalid CIDR {text}: invalid CIDR address: {text}")
    try:
        iface = parse_cidr(text)
    except ValueError as exc:
        raise ValueError(f"invalid CIDR {text}: {exc}") from None
    try:
        ip = canonicalize_ip(iface.ip)
    except ValueError as exc:
        raise ValueError(f"invalid address {index}: {exc}") from None
    if ip.version != iface.version:
        prefix = max(iface.network.prefixlen - 96, 0)
        iface = ipaddress.ip_interface(f"{ip}/{prefix}")
    return iface


def _parse_gateway(value: Any) -> IPAddress | None:
    if not value:
        return None
    try:
        return canonicalize_ip(ipaddress.ip_address(value))
    except ValueError:
        raise ValueError(f"invalid IP address: {value}") from None


def load_ipam_config(data: bytes | str, env_args: str = "") -> tuple[StaticIPAMConfig, str]:
    """Parse and validate the configuration; env_args are ignored."""
    net = json.loads(data)
    if not isinstance(net, dict):
        raise ValueError("network configuration is not a JSON object")
    ipam = net.get("ipam")
    if not ipam:
        raise ValueError("IPAM config missing 'ipam' key")
    cni_version = net.get("cniVersion") or ""

    conf = StaticIPAMConfig(
        type=ipam.get("type") or "",
        routes=[Route.from_dict(r) for r in ipam.get("routes") or []],
        dns=DNS.from_dict(ipam.get("dns")),
    )

    num_v4 = num_v6 = 0
    for i, entry in enumerate(ipam.get("addresses") or []):
        text = entry.get("address") or ""
        iface = _parse_address(text, i)
        version = "4" if iface.version == 4 else "6"
        if version == "4":
            num_v4 += 1
        else:
            num_v6 += 1
        conf.addresses.append(
            Address(text, iface, version, _parse_gateway(entry.get("gateway")))
        )

    if (num_v4 > 1 or num_v6 > 1) and cni_version in LEGACY_VERSIONS:
        raise ValueError(
            f"CNI version {cni_version} does not support more than 1 address per family"
        )

    conf.name = net.get("name") or ""
    return conf, cni_version


def cmd_add(args: CmdArgs, stdout: TextIO | None = None) -> None:
    """Print the configured addresses, routes and DNS as the result."""
    conf, version = load_ipam_config(args.stdin_data, args.args)
    result = Result(
        ips=[IPConfig(a.version, a.address, a.gateway) for a in conf.addresses],
        routes=list(conf.routes),
        dns=conf.dns,
    )
    print_result(result, version, stdout)


def cmd_del(args: CmdArgs) -> None:
    """Check the configuration; nothing was allocated, so nothing is released."""
    load_ipam_config(args.stdin_data, args.args)


def cmd_get(args: CmdArgs, stdout: TextIO | None = None) -> None:
    """GET is not offered by this plugin; always reports an error."""
    raise PluginError(ERR_GENERIC, "the GET command is not supported")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the plugin from the environment and standard streams."""
    return plugin_main(cmd_add, cmd_get, cmd_del)


if __name__ == "__main__":
    raise SystemExit(main())