"""Persistence helpers for preferences and scan history."""

from .database import (
    get_device,
    get_preference,
    get_scan_devices,
    list_scan_history,
    record_scan,
    set_preference,
)

__all__ = [
    "get_device",
    "get_preference",
    "get_scan_devices",
    "list_scan_history",
    "record_scan",
    "set_preference",
]
