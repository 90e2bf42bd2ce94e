# cni_ipam

IP address management (IPAM) plugins for container networking, following
the CNI plugin protocol: the runtime passes the network configuration as
JSON on standard input and the command in environment variables, and the
plugin prints a JSON result on standard output.

Two plugins are provided:

- **host-local** (`cni_ipam.host_local`) hands out one address from each
  configured range set and records each reservation as a file on disk, one
  file per address holding the container id, guarded by an exclusive file
  lock. Allocation is round-robin: the address after the last one reserved
  is tried first, and gateways are skipped.
- **static** (`cni_ipam.static`) returns the addresses, routes and DNS
  settings written in its configuration and allocates nothing.

`cni_ipam.dhcp_options` decodes DHCP options (router, subnet mask, static
routes, classless static routes, lease, renewal and rebinding times) into
addresses, `Route` objects and `timedelta` values.

## Installation

```
pip install .
```

The disk store uses `fcntl` file locks, so the host-local plugin needs a
POSIX system.

## Running the plugins

Both commands read the CNI environment (`CNI_COMMAND`, `CNI_CONTAINERID`,
`CNI_NETNS`, `CNI_IFNAME`, `CNI_ARGS`, `CNI_PATH`) and the network
configuration from standard input.

```
CNI_COMMAND=ADD CNI_CONTAINERID=example CNI_NETNS=/some/where \
CNI_IFNAME=eth0 CNI_PATH=/opt/cni/bin cni-host-local < net.json
```

```
CNI_COMMAND=ADD CNI_CONTAINERID=example CNI_NETNS=/some/where \
CNI_IFNAME=eth0 CNI_PATH=/opt/cni/bin cni-static < net.json
```

Commands:

- `ADD` prints the result in the layout of the configuration's
  `cniVersion`: `0.3.0`, `0.3.1` and `0.4.0` give an `ips` list; `0.1.0`,
  `0.2.0` or no version give `ip4`/`ip6` entries.
- `DEL` releases every address held by the container (host-local) or only
  checks the configuration (static).
- `VERSION` prints the supported spec versions.
- `GET` is not supported and reports an error.

On failure the plugin prints a JSON error object (`code`, `msg` and
possibly `details`) on standard output and exits with status 1.

A host-local configuration:

```json
{
  "cniVersion": "0.3.1",
  "name": "mynet",
  "type": "ipvlan",
  "ipam": {
    "type": "host-local",
    "dataDir": "/var/lib/cni/networks",
    "resolvConf": "/etc/resolv.conf",
    "ranges": [
      [{"subnet": "10.1.2.0/24"}],
      [{"subnet": "2001:db8:1::/64"}]
    ],
    "routes": [{"dst": "0.0.0.0/0"}]
  }
}
```

An old-style single range (`subnet`, `rangeStart`, `rangeEnd`, `gateway`
directly under `ipam`) and ranges from `runtimeConfig.ipRanges` are also
accepted. Without `dataDir`, reservations go under
`/var/lib/cni/networks/<name>`. Specific addresses can be requested with
`CNI_ARGS=IP=10.1.2.10` or with `"args": {"cni": {"ips": ["10.1.2.88"]}}`
in the configuration.

A static configuration:

```json
{
  "cniVersion": "0.3.1",
  "name": "mynet",
  "ipam": {
    "type": "static",
    "addresses": [{"address": "10.10.0.1/24", "gateway": "10.10.0.254"}],
    "routes": [{"dst": "0.0.0.0/0"}],
    "dns": {"nameservers": ["192.0.2.53"]}
  }
}
```

## Using the library

```python
from cni_ipam.config import load_ipam_config
from cni_ipam.disk import DiskStore
from cni_ipam.allocator import IPAllocator

with open("net.json", "rb") as f:
    conf, version = load_ipam_config(f.read(), "")
store = DiskStore(conf.name, conf.data_dir)
allocator = IPAllocator(conf.ranges[0], store, 0)
ip_config = allocator.get("container-id", None)
allocator.release("container-id")
store.close()
```

Other pieces: `iprange.Range` and `range_set.RangeSet` validate ranges and
fill in defaults; `store.MemoryStore` is an in-memory store; `dns.parse_resolv_conf`
reads a resolv.conf file; `result.Result` and `result.print_result` build
and write results; `plugin.plugin_main` dispatches a command from the
environment.

## What this package does not do

There is no DHCP client or daemon: `cni_ipam.dhcp_options` only decodes
option values that have already been received. The plugins do not touch
network interfaces or namespaces; they only choose and record addresses.

## Tests

```
pip install .[test]
pytest
```