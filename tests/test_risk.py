from __future__ import annotations

from netsentry.intel.risk import aggregate_health_score, count_by_level, device_score
from netsentry.scanner.models import Device

from .conftest import make_device


def test_empty_device_set_scores_zero():
    assert aggregate_health_score([]) == 0


def test_mixed_levels_average():
    devices = [make_device("10.0.0.1", "safe"), make_device("10.0.0.2", "warning"), make_device("10.0.0.3", "danger")]
    assert aggregate_health_score(devices) == 60


def test_unknown_and_unrecognised_levels_score_fifty():
    assert aggregate_health_score([make_device("10.0.0.1", "unknown")]) == 50
    assert device_score(Device.from_dict({"ip": "10.0.0.9", "securityLevel": "critical"})) == 50
    assert device_score(Device.from_dict({"ip": "10.0.0.9"})) == 50


def test_rounds_half_up():
    # (100 + 60 + 60 + 60) / 4 = 70; (60 + 50) / 2 = 55
    assert aggregate_health_score([make_device("a", "safe")] + [make_device("b", "warning")] * 3) == 70
    assert aggregate_health_score([make_device("a", "warning"), make_device("b", "unknown")]) == 55
    # (100 + 100 + 20 + 20 + 50 + 60 + 60 + 20) / 8 = 53.75
    levels = ["safe", "safe", "danger", "danger", "unknown", "warning", "warning", "danger"]
    assert aggregate_health_score([make_device(str(i), level) for i, level in enumerate(levels)]) == 54
    # (100 + 100 + 20 + 50) / 4 = 67.5
    levels = ["safe", "safe", "danger", "unknown"]
    assert aggregate_health_score([make_device(str(i), level) for i, level in enumerate(levels)]) == 68


def test_count_by_level():
    devices = [make_device("1", "safe"), make_device("2", "safe"), make_device("3", "danger")]
    assert count_by_level(devices) == {"safe": 2, "warning": 0, "danger": 1, "unknown": 0}
