"""SQLite-backed preference and scan history storage for NetSentry."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import os
from pathlib import Path
import sqlite3
from typing import Any

from netsentry.scanner.models import Device, ScanOutcome

DATA_DIR = Path(os.environ.get("NETSENTRY_HOME") or Path.home() / ".netsentry")
DB_PATH = DATA_DIR / "netsentry.db"


def _connect() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS preferences (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS scans (
            id TEXT PRIMARY KEY,
            started_at TEXT NOT NULL,
            finished_at TEXT NOT NULL,
            device_count INTEGER NOT NULL,
            health_score INTEGER NOT NULL,
            issues_found INTEGER NOT NULL,
            error TEXT
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS devices (
            row_id INTEGER PRIMARY KEY AUTOINCREMENT,
            device_id TEXT NOT NULL,
            scan_id TEXT NOT NULL REFERENCES scans(id),
            position INTEGER NOT NULL,
            data TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_devices_scan ON devices(scan_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_devices_device ON devices(device_id)")
    return conn


def set_preference(key: str, value: Any) -> None:
    payload = json.dumps(value, ensure_ascii=False)
    stamp = datetime.now(timezone.utc).isoformat()
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO preferences(key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
            """,
            (key, payload, stamp),
        )


def get_preference(key: str, default: Any = None) -> Any:
    with _connect() as conn:
        row = conn.execute("SELECT value FROM preferences WHERE key = ?", (key,)).fetchone()
    if not row:
        return default
    try:
        return json.loads(str(row[0]))
    except json.JSONDecodeError:
        return default


def record_scan(outcome: ScanOutcome) -> str:
    """Persist a finished scan and its devices; returns the scan id."""
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO scans(id, started_at, finished_at, device_count, health_score, issues_found, error)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                outcome.scan_id,
                outcome.started_at.isoformat(),
                outcome.finished_at.isoformat(),
                len(outcome.devices),
                outcome.health_score,
                outcome.issues_found,
                outcome.error,
            ),
        )
        conn.executemany(
            "INSERT INTO devices(device_id, scan_id, position, data) VALUES (?, ?, ?, ?)",
            [
                (device.id, outcome.scan_id, position, json.dumps(device.to_dict(), ensure_ascii=False))
                for position, device in enumerate(outcome.devices)
            ],
        )
    return outcome.scan_id


def list_scan_history(limit: int = 50) -> list[dict[str, Any]]:
    with _connect() as conn:
        rows = conn.execute(
            """
            SELECT id, started_at, finished_at, device_count, health_score, issues_found, error
            FROM scans ORDER BY finished_at DESC LIMIT ?
            """,
            (max(1, int(limit)),),
        ).fetchall()
    return [
        {
            "scan_id": scan_id,
            "started_at": started_at,
            "finished_at": finished_at,
            "device_count": device_count,
            "health_score": health_score,
            "issues_found": issues_found,
            "error": error,
        }
        for scan_id, started_at, finished_at, device_count, health_score, issues_found, error in rows
    ]


def _decode_device(payload: str) -> Device | None:
    try:
        decoded = json.loads(str(payload))
    except json.JSONDecodeError:
        return None
    if not isinstance(decoded, dict) or "ip" not in decoded:
        return None
    return Device.from_dict(decoded)


def get_device(device_id: str) -> Device | None:
    """Return the most recently recorded copy of a device."""
    with _connect() as conn:
        row = conn.execute(
            "SELECT data FROM devices WHERE device_id = ? ORDER BY row_id DESC LIMIT 1",
            (device_id,),
        ).fetchone()
    if not row:
        return None
    return _decode_device(row[0])


def get_scan_devices(scan_id: str) -> list[Device]:
    with _connect() as conn:
        rows = conn.execute(
            "SELECT data FROM devices WHERE scan_id = ? ORDER BY position",
            (scan_id,),
        ).fetchall()
    devices: list[Device] = []
    for (payload,) in rows:
        device = _decode_device(payload)
        if device is not None:
            devices.append(device)
    return devices
