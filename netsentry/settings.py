"""Runtime settings: defaults, environment variables and stored preferences."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import logging
import os
from pathlib import Path
import shlex
from typing import Any, Mapping

from netsentry.scanner.engine import ExternalProcessEngine, ScanEngine, TimeoutEngine
from netsentry.scanner.models import ScanLevel
from netsentry.storage import database

logger = logging.getLogger(__name__)

ENV_VARS = {
    "engine_command": "NETSENTRY_ENGINE",
    "engine_timeout": "NETSENTRY_ENGINE_TIMEOUT",
    "subnet": "NETSENTRY_SUBNET",
    "level": "NETSENTRY_LEVEL",
    "scan_log_path": "NETSENTRY_SCAN_LOG",
    "schedule_interval_minutes": "NETSENTRY_SCHEDULE_MINUTES",
}


@dataclass(slots=True)
class ScanSettings:
    engine_command: list[str] = field(default_factory=list)
    engine_timeout: float | None = None
    subnet: str | None = "auto"
    level: ScanLevel = ScanLevel.ACTIVE
    scan_log_path: Path = field(default_factory=lambda: database.DATA_DIR / "scan_log.jsonl")
    schedule_interval_minutes: int = 60


def _coerce(name: str, value: Any) -> Any:
    if name == "engine_command":
        return shlex.split(value) if isinstance(value, str) else [str(part) for part in value]
    if name == "engine_timeout":
        timeout = float(value)
        return timeout if timeout > 0 else None
    if name == "level":
        return ScanLevel(str(value).lower())
    if name == "scan_log_path":
        return Path(value).expanduser()
    if name == "schedule_interval_minutes":
        return max(1, int(value))
    return str(value) if value else None


def _apply(settings: ScanSettings, values: Mapping[str, Any], source: str) -> None:
    for name, value in values.items():
        if value is None:
            continue
        try:
            setattr(settings, name, _coerce(name, value))
        except (TypeError, ValueError) as exc:
            logger.warning("ignoring invalid %s setting %s=%r: %s", source, name, value, exc)


def load_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    use_preferences: bool = True,
) -> ScanSettings:
    """Resolve settings from defaults, environment, preferences, then overrides."""
    settings = ScanSettings()
    env = os.environ if environ is None else environ
    _apply(settings, {name: env.get(var) for name, var in ENV_VARS.items()}, "environment")

    if use_preferences:
        names = [item.name for item in fields(ScanSettings)]
        _apply(settings, {name: database.get_preference(name) for name in names}, "preference")

    _apply(settings, overrides or {}, "override")
    return settings


def build_engine(settings: ScanSettings) -> ScanEngine:
    """Build the configured engine, supervised by a timeout when one is set."""
    if not settings.engine_command:
        raise ValueError(f"no scan engine configured; set {ENV_VARS['engine_command']} or pass --engine")
    engine: ScanEngine = ExternalProcessEngine(settings.engine_command, subnet=settings.subnet)
    if settings.engine_timeout:
        engine = TimeoutEngine(engine, settings.engine_timeout)
    return engine
