"""Intel package: device health scoring."""

from .risk import aggregate_health_score, count_by_level, device_score

__all__ = [
    "aggregate_health_score",
    "count_by_level",
    "device_score",
]
