from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from netsentry.scanner.models import Device, ScanLevel, SecurityLevel
from netsentry.storage import database


def make_device(ip: str, level: str = "unknown", **extra: Any) -> Device:
    return Device(
        id=extra.pop("id", ip),
        ip=ip,
        security_level=SecurityLevel.parse(level),
        **extra,
    )


class ScriptedEngine:
    """Engine double that replays progress events and returns a fixed result."""

    def __init__(
        self,
        *,
        events: tuple[tuple[str, int], ...] = (),
        result: list[Any] | None = None,
        error: BaseException | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.events = events
        self.result = result or []
        self.error = error
        self.gate = gate
        self.levels: list[ScanLevel] = []
        self.channel = None

    @property
    def calls(self) -> int:
        return len(self.levels)

    async def scan(self, level, channel):  # type: ignore[no-untyped-def]
        self.levels.append(level)
        self.channel = channel
        for phase, progress in self.events:
            channel.emit(phase, progress)
            await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.result)


@pytest.fixture
def isolated_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "netsentry.db"
    monkeypatch.setattr(database, "DATA_DIR", tmp_path)
    monkeypatch.setattr(database, "DB_PATH", db_path)
    return db_path


@pytest.fixture
def example_records() -> list[dict[str, Any]]:
    return [
        {"id": "cam", "ip": "192.168.1.20", "mac": "AA:BB:CC:00:00:20", "securityLevel": "danger", "issues": ["telnet open"]},
        {"id": "router", "ip": "192.168.1.1", "mac": "AA:BB:CC:00:00:01", "securityLevel": "warning"},
        {"id": "laptop", "ip": "192.168.1.10", "mac": "AA:BB:CC:00:00:10", "securityLevel": "safe"},
    ]
