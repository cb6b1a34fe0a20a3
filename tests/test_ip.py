import io
import ipaddress

import pytest

from chwire.columns.common import UnexpectedTypeError
from chwire.columns.ip import IP, IPv4, IPv6, InvalidScanTypeError, InvalidScanValueError

ADDRESSES = [
    "127.0.0.1",
    "99.67.1.100",
    "::1",
    "2001:0db8:0a0b:12f0:0000:0000:0000:0001",
    "2001:0db8::0001",
    "3731:54:65fe:2::a7",
]


def _round_trip(column, value):
    buf = io.BytesIO()
    column.write(buf, value)
    buf.seek(0)
    result = column.read(buf, False)
    assert buf.read() == b""
    return result


@pytest.mark.parametrize("text", ADDRESSES)
def test_ip_converter(text):
    ip = IP(ipaddress.ip_address(text).packed)
    value = ip.to_bytes()
    assert len(value) == 16
    restored = IP.scan(value[-4:]) if ":" not in text else IP.scan(value)
    assert restored == ip, f"Invalid ip restore: {ip} != {restored}"
    assert IP.scan(text) == ip


def test_ip_scan_errors():
    with pytest.raises(InvalidScanValueError):
        IP.scan("")
    with pytest.raises(InvalidScanValueError):
        IP.scan(b"123")
    with pytest.raises(InvalidScanTypeError):
        IP.scan(1)


def test_ip_to_bytes_maps_ipv4():
    ip = IP(bytes([127, 0, 0, 1]))
    assert ip.to_bytes() == bytes(10) + b"\xff\xff" + bytes([127, 0, 0, 1])


def test_ip_equality_across_widths():
    four = IP(bytes([1, 2, 3, 4]))
    sixteen = IP(four.to_bytes())
    assert four == sixteen
    assert hash(four) == hash(sixteen)


def test_ip_str():
    assert str(IP(bytes([127, 0, 0, 1]))) == "127.0.0.1"
    assert str(IP.scan("2001:0db8::0001")) == "2001:db8::1"
    assert str(IP()) == "<nil>"


def test_ip_scan_from_address_object():
    assert IP.scan(ipaddress.ip_address("99.67.1.100")) == IP.scan("99.67.1.100")


def test_ipv4_round_trip():
    column = IPv4("column_name")
    assert _round_trip(column, "127.0.0.1") == ipaddress.IPv4Address("127.0.0.1")
    assert column.ch_type == "IPv4"
    assert column.scan_type is ipaddress.IPv4Address


def test_ipv4_wire_bytes_are_reversed():
    buf = io.BytesIO()
    IPv4("c").write(buf, "1.2.3.4")
    assert buf.getvalue() == bytes([4, 3, 2, 1])


@pytest.mark.parametrize(
    "value",
    [
        ipaddress.ip_address("0.0.0.0"),
        IP.scan("0.0.0.0"),
        "0.0.0.0",
    ],
)
def test_ipv4_write_accepts(value):
    assert _round_trip(IPv4("c"), value) == ipaddress.IPv4Address("0.0.0.0")


@pytest.mark.parametrize("value", ["", "2001:0db8::0001"])
def test_ipv4_write_rejects(value):
    column = IPv4("c")
    with pytest.raises(UnexpectedTypeError) as info:
        column.write(io.BytesIO(), value)
    assert info.value.value == value
    assert info.value.column is column


def test_ipv4_rejects_int():
    with pytest.raises(UnexpectedTypeError) as info:
        IPv4("c").write(io.BytesIO(), 0)
    assert info.value.value == 0


def test_ipv6_round_trip():
    column = IPv6("column_name")
    text = "2001:0db8:0000:0000:0000:ff00:0042:8329"
    assert _round_trip(column, text) == ipaddress.IPv6Address(text)
    assert column.ch_type == "IPv6"
    assert column.scan_type is ipaddress.IPv6Address


@pytest.mark.parametrize(
    "value",
    [
        ipaddress.ip_address("2001:0db8::0001"),
        IP.scan("2001:0db8::0001"),
        "2001:0db8::0001",
    ],
)
def test_ipv6_write_accepts(value):
    assert _round_trip(IPv6("c"), value) == ipaddress.IPv6Address("2001:db8::1")


def test_ipv6_write_ipv4_is_mapped():
    assert _round_trip(IPv6("c"), "0.0.0.0") == ipaddress.IPv6Address("::ffff:0.0.0.0")


@pytest.mark.parametrize("value", ["", 0])
def test_ipv6_write_rejects(value):
    column = IPv6("c")
    with pytest.raises(UnexpectedTypeError) as info:
        column.write(io.BytesIO(), value)
    assert info.value.value == value