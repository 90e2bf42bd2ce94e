"""The host-local IPAM plugin: allocates addresses from ranges kept on disk."""

from __future__ import annotations

from typing import Sequence, TextIO

from .allocator import IPAllocator
from .config import load_ipam_config
from .disk import DiskStore
from .dns import parse_resolv_conf
from .iprange import IPAddress
from .plugin import ERR_GENERIC, CmdArgs, PluginError, plugin_main
from .result import IPConfig, Result, print_result


def cmd_add(args: CmdArgs, stdout: TextIO | None = None) -> None:
    """Allocate one address from every range set and print the result."""
    conf, version = load_ipam_config(args.stdin_data, args.args)

    result = Result()
    if conf.resolv_conf:
        result.dns = parse_resolv_conf(conf.resolv_conf)

    store = DiskStore(conf.name, conf.data_dir)
    try:
        allocs: list[IPAllocator] = []
        requested: dict[str, IPAddress] = {str(ip): ip for ip in conf.ip_args}

        def release_all() -> None:
            for alloc in allocs:
                try:
                    alloc.release(args.container_id)
                except Exception:
                    pass

        for idx, rangeset in enumerate(conf.ranges):
            allocator = IPAllocator(rangeset, store, idx)

            requested_ip = None
            for key, ip in list(requested.items()):
                if rangeset.contains(ip):
                    requested_ip = ip
                    del requested[key]
                    break

            try:
                ip_conf: IPConfig = allocator.get(args.container_id, requested_ip)
            except Exception as exc:
                release_all()
                raise ValueError(f"failed to allocate for range {idx}: {exc}") from exc

            allocs.append(allocator)
            result.ips.append(ip_conf)

        if requested:
            release_all()
            raise ValueError(
                "failed to allocate all requested IPs: " + " ".join(requested)
            )

        result.routes = list(conf.routes)
    finally:
        store.close()

    print_result(result, version, stdout)


def cmd_del(args: CmdArgs) -> None:
    """Release every address held by the container, across all ranges."""
    conf, _version = load_ipam_config(args.stdin_data, args.args)

    store = DiskStore(conf.name, conf.data_dir)
    errors: list[str] = []
    try:
        for idx, rangeset in enumerate(conf.ranges):
            try:
                IPAllocator(rangeset, store, idx).release(args.container_id)
            except Exception as exc:
                errors.append(str(exc))
    finally:
        store.close()

    if errors:
        raise ValueError(";".join(errors))


def cmd_get(args: CmdArgs, stdout: TextIO | None = None) -> None:
    """GET is not offered by this plugin; always reports an error."""
    raise PluginError(ERR_GENERIC, "the GET command is not supported")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the plugin from the environment and standard streams."""
    return plugin_main(cmd_add, cmd_get, cmd_del)


if __name__ == "__main__":
    raise SystemExit(main())