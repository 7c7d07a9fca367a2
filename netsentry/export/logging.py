"""Persistent JSON-lines log of finished scan sessions."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
import json
from pathlib import Path
import threading
from typing import Any, Callable, Iterator

from netsentry.scanner.models import ScanOutcome

_APPEND_LOCK = threading.Lock()


@contextmanager
def _advisory_file_lock(path: Path) -> Iterator[None]:
    """Apply a best-effort cross-platform advisory lock for a file path."""
    lock_path = path.with_suffix(path.suffix + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    with lock_path.open("a+", encoding="utf-8") as lock_file:
        try:
            import fcntl  # type: ignore
        except ModuleNotFoundError:
            fcntl = None  # type: ignore[assignment]

        if fcntl is not None:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            return

        try:
            import msvcrt  # type: ignore
        except ModuleNotFoundError:
            # Process-level lock only.
            yield
            return

        msvcrt.locking(lock_file.fileno(), msvcrt.LK_LOCK, 1)
        try:
            yield
        finally:
            msvcrt.locking(lock_file.fileno(), msvcrt.LK_UNLCK, 1)


def _with_timestamp(record: dict[str, Any]) -> dict[str, Any]:
    payload = dict(record)
    payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return payload


def append_scan_result(record: dict[str, Any], path: str | Path) -> Path:
    """Append one scan record as a JSON line."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = _with_timestamp(record)

    with _APPEND_LOCK, _advisory_file_lock(target):
        with target.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
    return target


def read_scan_log(path: str | Path) -> list[dict[str, Any]]:
    """Read back every well-formed record in a scan log."""
    target = Path(path)
    if not target.exists():
        return []
    records: list[dict[str, Any]] = []
    with target.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            try:
                decoded = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(decoded, dict):
                records.append(decoded)
    return records


def scan_log_hook(path: str | Path) -> Callable[[ScanOutcome], None]:
    """Return a finish hook that appends each scan outcome to ``path``."""

    def _append(outcome: ScanOutcome) -> None:
        append_scan_result(outcome.summary(), path)

    return _append
