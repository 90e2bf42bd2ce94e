import ipaddress

import pytest

from cni_ipam.allocator import IPAllocator
from cni_ipam.iprange import Range
from cni_ipam.range_set import RangeSet
from cni_ipam.store import MemoryStore


def ip(text):
    return ipaddress.ip_address(text)


def mkalloc():
    p = RangeSet([Range(subnet=ipaddress.ip_interface("192.168.1.0/29"))])
    p.canonicalize()
    return IPAllocator(p, MemoryStore({}, {}), "rangeid")


def run_case(subnets, ipmap, last_ip):
    p = RangeSet(Range(subnet=ipaddress.ip_interface(s)) for s in subnets)
    p.canonicalize()
    store = MemoryStore(dict(ipmap), {"rangeid": ip(last_ip) if last_ip else None})
    return IPAllocator(p, store, "rangeid").get("ID", None)


def nextip(it):
    item = next(it, None)
    return None if item is None else item[0].ip


def test_iter_from_beginning():
    it = mkalloc().get_iter()
    got = [nextip(it) for _ in range(6)]
    assert got == [ip("192.168.1.2"), ip("192.168.1.3"), ip("192.168.1.4"),
                   ip("192.168.1.5"), ip("192.168.1.6"), None]


def test_iter_from_end():
    a = mkalloc()
    a.store.reserve("ID", ip("192.168.1.6"), a.range_id)
    a.store.release_by_id("ID")
    it = a.get_iter()
    got = [nextip(it) for _ in range(6)]
    assert got == [ip("192.168.1.2"), ip("192.168.1.3"), ip("192.168.1.4"),
                   ip("192.168.1.5"), ip("192.168.1.6"), None]


def test_iter_from_middle():
    a = mkalloc()
    a.store.reserve("ID", ip("192.168.1.3"), a.range_id)
    a.store.release_by_id("ID")
    it = a.get_iter()
    got = [nextip(it) for _ in range(6)]
    assert got == [ip("192.168.1.4"), ip("192.168.1.5"), ip("192.168.1.6"),
                   ip("192.168.1.2"), ip("192.168.1.3"), None]


def test_iter_stays_exhausted():
    it = mkalloc().get_iter()
    assert len(list(it)) == 5
    assert next(it, None) is None


@pytest.mark.parametrize(
    "subnets, ipmap, expect, last_ip",
    [
        (["10.0.0.0/29"], {}, "10.0.0.2", ""),
        (["2001:db8:1::0/64"], {}, "2001:db8:1::2", ""),
        (["10.0.0.0/30"], {}, "10.0.0.2", ""),
        (["10.0.0.0/29"], {"10.0.0.2": "id"}, "10.0.0.3", ""),
        (["10.0.0.0/29"], {}, "10.0.0.6", "10.0.0.5"),
        (["10.0.0.0/29"], {"10.0.0.4": "id", "10.0.0.5": "id"}, "10.0.0.6", "10.0.0.3"),
        (["10.0.0.0/29"], {"10.0.0.6": "id"}, "10.0.0.2", "10.0.0.5"),
        (["10.0.0.0/29"], {"10.0.0.2": "id"}, "10.0.0.3", "10.0.0.128"),
        (["10.0.0.0/29"],
         {"10.0.0.2": "id", "10.0.0.4": "id", "10.0.0.5": "id", "10.0.0.6": "id"},
         "10.0.0.3", "10.0.0.3"),
        (["10.0.0.0/30", "10.0.1.0/30"], {}, "10.0.0.2", ""),
        (["10.0.0.0/30", "10.0.1.0/30"], {}, "10.0.1.2", "10.0.0.2"),
        (["10.0.0.0/30", "10.0.1.0/30", "10.0.2.0/30"], {}, "10.0.0.2", "10.0.2.2"),
    ],
)
def test_round_robin_cases(subnets, ipmap, expect, last_ip):
    res = run_case(subnets, ipmap, last_ip)
    assert str(res.address.ip) == expect


def test_version_of_result():
    assert run_case(["2001:db8:1::0/64"], {}, "").version == "6"
    assert run_case(["10.0.0.0/29"], {}, "").version == "4"


def test_does_not_allocate_broadcast():
    alloc = mkalloc()
    for i in range(2, 7):
        res = alloc.get("ID", None)
        assert str(res.address) == f"192.168.1.{i}/29"
        assert res.gateway == ip("192.168.1.1")
    with pytest.raises(ValueError, match="^no IP addresses available in range set"):
        alloc.get("ID", None)


def test_round_robin_after_release():
    alloc = mkalloc()
    assert str(alloc.get("ID", None).address) == "192.168.1.2/29"
    alloc.release("ID")
    assert alloc.store.ip_map == {}
    assert str(alloc.get("ID", None).address) == "192.168.1.3/29"


def test_requested_ip_is_allocated():
    alloc = mkalloc()
    res = alloc.get("ID", ip("192.168.1.5"))
    assert str(res.address.ip) == "192.168.1.5"
    assert alloc.store.ip_map == {"192.168.1.5": "ID"}


def test_requested_ip_already_taken():
    alloc = mkalloc()
    alloc.get("ID", ip("192.168.1.5"))
    with pytest.raises(ValueError) as err:
        alloc.get("ID", ip("192.168.1.5"))
    assert str(err.value) == (
        "requested IP address 192.168.1.5 is not available in range set "
        "192.168.1.1-192.168.1.6"
    )


def test_requested_ip_after_range_end():
    alloc = mkalloc()
    alloc.rangeset[0].range_end = ip("192.168.1.4")
    with pytest.raises(ValueError, match="not in range set"):
        alloc.get("ID", ip("192.168.1.5"))


def test_requested_ip_before_range_start():
    alloc = mkalloc()
    alloc.rangeset[0].range_start = ip("192.168.1.3")
    with pytest.raises(ValueError, match="not in range set"):
        alloc.get("ID", ip("192.168.1.2"))


def test_requested_gateway_rejected():
    alloc = mkalloc()
    with pytest.raises(ValueError, match="is subnet's gateway"):
        alloc.get("ID", ip("192.168.1.1"))


@pytest.mark.parametrize(
    "subnets, ipmap",
    [
        (["10.0.0.0/30"], {"10.0.0.2": "id"}),
        (["10.0.0.0/29"], {f"10.0.0.{i}": "id" for i in range(2, 7)}),
        (["10.0.0.0/30", "10.0.1.0/30"], {"10.0.0.2": "id", "10.0.1.2": "id"}),
    ],
)
def test_out_of_ips(subnets, ipmap):
    with pytest.raises(ValueError, match="^no IP addresses available in range set"):
        run_case(subnets, ipmap, "")


def test_range_id_from_int():
    p = RangeSet([Range(subnet=ipaddress.ip_interface("10.0.0.0/29"))])
    p.canonicalize()
    store = MemoryStore()
    alloc = IPAllocator(p, store, 3)
    alloc.get("ID")
    assert store.last_reserved == {"3": ip("10.0.0.2")}