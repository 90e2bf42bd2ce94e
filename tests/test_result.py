import io
import ipaddress
import json

import pytest

from cni_ipam.dns import DNS
from cni_ipam.result import IPConfig, Result, Route, parse_cidr, print_result


def _result():
    return Result(
        ips=[
            IPConfig("4", parse_cidr("10.1.2.2/24"), ipaddress.ip_address("10.1.2.1")),
            IPConfig("6", parse_cidr("2001:db8:1::2/64"), ipaddress.ip_address("2001:db8:1::1")),
        ],
        routes=[
            Route.from_dict({"dst": "0.0.0.0/0"}),
            Route.from_dict({"dst": "192.168.0.0/16", "gw": "1.1.1.1"}),
            Route.from_dict({"dst": "::/0"}),
        ],
        dns=DNS(nameservers=["192.0.2.3"]),
    )


def test_parse_cidr_keeps_host_bits():
    iface = parse_cidr("10.1.2.2/24")
    assert str(iface.ip) == "10.1.2.2"
    assert iface.network.prefixlen == 24


def test_parse_cidr_invalid():
    with pytest.raises(ValueError):
        parse_cidr("not-a-cidr")


def test_route_round_trip():
    data = {"dst": "192.168.0.0/16", "gw": "1.1.1.1"}
    assert Route.from_dict(data).to_dict() == data
    assert Route.from_dict({"dst": "0.0.0.0/0"}).to_dict() == {"dst": "0.0.0.0/0"}


def test_current_format():
    out = _result().to_dict("0.3.1")
    assert out["cniVersion"] == "0.3.1"
    assert [ip["address"] for ip in out["ips"]] == ["10.1.2.2/24", "2001:db8:1::2/64"]
    assert out["dns"] == {"nameservers": ["192.0.2.3"]}


def test_legacy_format():
    out = _result().to_dict("0.1.0")
    assert out["ip4"]["ip"] == "10.1.2.2/24"
    assert out["ip4"]["gateway"] == "10.1.2.1"
    assert len(out["ip4"]["routes"]) == 2
    assert out["ip6"]["routes"] == [{"dst": "::/0"}]


def test_legacy_without_ips_fails():
    with pytest.raises(ValueError):
        Result().to_dict("0.2.0")


def test_unknown_version():
    with pytest.raises(ValueError):
        _result().to_dict("9.9.9")


def test_print_result():
    buf = io.StringIO()
    print_result(_result(), "0.3.1", buf)
    assert '"version":' in buf.getvalue()
    assert json.loads(buf.getvalue()) == _result().to_dict("0.3.1")