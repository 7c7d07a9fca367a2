"""Stable display ordering for engine results."""

from __future__ import annotations

from typing import Iterable

from .ip_utils import ip_sort_key
from .models import Device


def normalize_devices(devices: Iterable[Device]) -> tuple[Device, ...]:
    """Order devices by ascending IP, octet by octet.

    ``sorted`` is stable, so devices sharing an address keep their input order.
    """
    return tuple(sorted(devices, key=lambda device: ip_sort_key(device.ip)))
