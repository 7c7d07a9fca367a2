"""Health scoring derived from per-device security levels."""

from __future__ import annotations

from typing import Iterable

from netsentry.scanner.models import Device, SecurityLevel

SECURITY_LEVEL_SCORES = {
    SecurityLevel.SAFE: 100,
    SecurityLevel.WARNING: 60,
    SecurityLevel.DANGER: 20,
}
DEFAULT_DEVICE_SCORE = 50


def device_score(device: Device) -> int:
    """Return the 0-100 score contributed by one device."""
    return SECURITY_LEVEL_SCORES.get(device.security_level, DEFAULT_DEVICE_SCORE)


def aggregate_health_score(devices: Iterable[Device]) -> int:
    """Mean of device scores rounded half up; ``0`` when there are no devices."""
    scores = [device_score(device) for device in devices]
    if not scores:
        return 0
    total, count = sum(scores), len(scores)
    return (2 * total + count) // (2 * count)


def count_by_level(devices: Iterable[Device]) -> dict[str, int]:
    counts = {level.value: 0 for level in SecurityLevel}
    for device in devices:
        counts[device.security_level.value] += 1
    return counts
