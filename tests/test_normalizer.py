from __future__ import annotations

from collections import Counter

import pytest

from netsentry.scanner.ip_utils import ip_sort_key
from netsentry.scanner.normalizer import normalize_devices

from .conftest import make_device


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("192.168.1.10", (192, 168, 1, 10)),
        ("10.0.x.5", (10, 0, 0, 5)),
        ("1.2.3", (1, 2, 3, 0)),
        ("1.2.3.4.5", (1, 2, 3, 4)),
        ("300.1.1.1", (0, 1, 1, 1)),
        ("not-an-ip", (0, 0, 0, 0)),
        ("192.168.1.\u00b2", (192, 168, 1, 0)),
        ("10.\u2460.0.7", (10, 0, 0, 7)),
        ("\u0661\u0662.0.0.1", (0, 0, 0, 1)),
        ("", (0, 0, 0, 0)),
        (None, (0, 0, 0, 0)),
    ],
)
def test_ip_sort_key_never_raises(value, expected):
    assert ip_sort_key(value) == expected


def test_numeric_octet_order_not_string_order():
    devices = [make_device("192.168.1.10"), make_device("192.168.1.2"), make_device("10.0.0.254")]

    ordered = normalize_devices(devices)

    assert [device.ip for device in ordered] == ["10.0.0.254", "192.168.1.2", "192.168.1.10"]


def test_identical_addresses_keep_input_order():
    first = make_device("192.168.1.5", id="first")
    second = make_device("192.168.1.5", id="second")
    lower = make_device("192.168.1.4", id="lower")

    ordered = normalize_devices([first, lower, second])

    assert [device.id for device in ordered] == ["lower", "first", "second"]


def test_malformed_addresses_are_kept_and_sorted_as_zero():
    broken = make_device("garbage", id="broken")
    devices = [make_device("192.168.1.1"), broken, make_device("0.0.0.1")]

    ordered = normalize_devices(devices)

    assert ordered[0] is broken
    assert Counter(ordered) == Counter(devices)


def test_output_is_sorted_permutation():
    ips = ["10.0.0.3", "10.0.0.1", "10.0.1.0", "9.255.255.255", "10.0.0.1", "bad.1.2.3"]
    devices = [make_device(ip, id=str(index)) for index, ip in enumerate(ips)]

    ordered = normalize_devices(devices)

    assert Counter(ordered) == Counter(devices)
    keys = [ip_sort_key(device.ip) for device in ordered]
    assert keys == sorted(keys)


def test_empty_input():
    assert normalize_devices([]) == ()


def test_unicode_digit_octet_is_kept_and_sorted_as_zero():
    odd = make_device("192.168.1.²", id="odd")
    first = make_device("192.168.1.1", id="first")

    ordered = normalize_devices([first, odd])

    assert [device.id for device in ordered] == ["odd", "first"]
