from __future__ import annotations

from pathlib import Path

import pytest

from netsentry.scanner.engine import ExternalProcessEngine, TimeoutEngine
from netsentry.scanner.models import ScanLevel
from netsentry.settings import build_engine, load_settings
from netsentry.storage import set_preference


def test_defaults(isolated_db):
    settings = load_settings(environ={})

    assert settings.engine_command == []
    assert settings.engine_timeout is None
    assert settings.subnet == "auto"
    assert settings.level is ScanLevel.ACTIVE
    assert settings.scan_log_path == isolated_db.parent / "scan_log.jsonl"
    assert settings.schedule_interval_minutes == 60


def test_environment_then_preferences_then_overrides(isolated_db):
    environ = {
        "NETSENTRY_ENGINE": "netsentry-engine --json",
        "NETSENTRY_ENGINE_TIMEOUT": "120",
        "NETSENTRY_SUBNET": "10.0.0.0/24",
        "NETSENTRY_SCHEDULE_MINUTES": "15",
    }
    set_preference("subnet", "172.16.0.0/16")
    set_preference("level", "passive")

    settings = load_settings({"engine_timeout": 30, "schedule_interval_minutes": None}, environ=environ)

    assert settings.engine_command == ["netsentry-engine", "--json"]
    assert settings.engine_timeout == 30.0
    assert settings.subnet == "172.16.0.0/16"
    assert settings.level is ScanLevel.PASSIVE
    assert settings.schedule_interval_minutes == 15


def test_invalid_values_are_ignored(isolated_db):
    settings = load_settings(
        {"level": "aggressive", "engine_timeout": "soon", "scan_log_path": "~/scans.jsonl"},
        environ={},
        use_preferences=False,
    )

    assert settings.level is ScanLevel.ACTIVE
    assert settings.engine_timeout is None
    assert settings.scan_log_path == Path("~/scans.jsonl").expanduser()


def test_build_engine(isolated_db):
    with pytest.raises(ValueError, match="no scan engine configured"):
        build_engine(load_settings(environ={}, use_preferences=False))

    plain = build_engine(load_settings({"engine_command": ["engine"], "subnet": ""}, environ={}, use_preferences=False))
    assert isinstance(plain, ExternalProcessEngine)
    assert plain.subnet is None

    supervised = build_engine(load_settings({"engine_command": "engine", "engine_timeout": 5}, environ={}, use_preferences=False))
    assert isinstance(supervised, TimeoutEngine)
    assert supervised.timeout == 5.0
    assert isinstance(supervised.engine, ExternalProcessEngine)
