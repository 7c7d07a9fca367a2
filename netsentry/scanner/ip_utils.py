"""IP helpers for result ordering and engine targeting."""

from __future__ import annotations

import ipaddress
import socket

import psutil

OCTET_COUNT = 4


def _octet_value(part: str) -> int:
    text = part.strip()
    if not (text.isascii() and text.isdigit()):
        return 0
    value = int(text)
    return value if value <= 255 else 0


def ip_sort_key(value: str | None) -> tuple[int, int, int, int]:
    """Return the four numeric octets of a dotted-quad address.

    Never raises: unparseable or missing octets count as ``0`` and anything
    past the fourth octet is ignored.
    """
    parts = str(value or "").split(".")[:OCTET_COUNT]
    octets = [_octet_value(part) for part in parts]
    octets.extend([0] * (OCTET_COUNT - len(octets)))
    return octets[0], octets[1], octets[2], octets[3]


def default_subnet() -> ipaddress.IPv4Network | None:
    """Return the IPv4 network of the first non-loopback interface, if any."""
    for interface_addrs in psutil.net_if_addrs().values():
        for addr in interface_addrs:
            if getattr(addr, "family", None) != socket.AF_INET:
                continue
            if not addr.address or not addr.netmask:
                continue
            ip = ipaddress.ip_address(addr.address)
            if ip.is_loopback or ip.is_link_local:
                continue
            try:
                return ipaddress.ip_network(f"{addr.address}/{addr.netmask}", strict=False)
            except ValueError:
                continue
    return None
