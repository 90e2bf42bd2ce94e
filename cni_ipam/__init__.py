"""IP address management for container networks: host-local and static plugins and DHCP option decoding."""

__version__ = "0.1.0"
__all__ = [
    "allocator",
    "config",
    "dhcp_options",
    "disk",
    "dns",
    "host_local",
    "iprange",
    "plugin",
    "range_set",
    "result",
    "static",
    "store",
]