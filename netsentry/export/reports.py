"""Security reports and spreadsheet exports for a device set."""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Iterable, Sequence

import pandas as pd

from netsentry.intel.risk import aggregate_health_score, count_by_level, device_score
from netsentry.scanner.models import Device, SecurityLevel

from .writers import export_text_document

REPORT_FORMATS = ("text", "json")
RULE = "-" * 61

LEVEL_LABELS = {
    SecurityLevel.SAFE: "OK safe",
    SecurityLevel.WARNING: "!! warning",
    SecurityLevel.DANGER: "XX danger",
    SecurityLevel.UNKNOWN: "?? unknown",
}


def _as_timestamp(value: datetime | None) -> str:
    return (value or datetime.now(timezone.utc)).isoformat()


def device_rows(devices: Iterable[Device]) -> list[dict[str, Any]]:
    """Flatten devices into spreadsheet-friendly rows."""
    return [
        {
            "ip": device.ip,
            "mac": device.mac,
            "name": device.name or "",
            "type": device.type.value,
            "vendor": device.vendor or "",
            "security_level": device.security_level.value,
            "score": device_score(device),
            "issue_count": len(device.issues),
            "issues": "; ".join(device.issues),
        }
        for device in devices
    ]


def build_text_report(devices: Sequence[Device], *, generated_at: datetime | None = None) -> str:
    lines = [
        "NetSentry network security report",
        f"Generated: {_as_timestamp(generated_at)}",
        f"Devices found: {len(devices)}",
        f"Health score: {aggregate_health_score(devices)} / 100",
        "",
        "Devices",
        RULE,
    ]
    for index, device in enumerate(devices, start=1):
        lines.append(f"{index}. {device.name or 'Unknown device'} [{LEVEL_LABELS[device.security_level]}]")
        lines.append(f"   IP: {device.ip} | MAC: {device.mac or '-'}")
        if device.vendor:
            lines.append(f"   Vendor: {device.vendor}")
        for issue in device.issues:
            lines.append(f"   - {issue}")

    affected: dict[str, list[str]] = {}
    for device in devices:
        for issue in device.issues:
            affected.setdefault(issue, []).append(device.name or device.ip)
    if affected:
        lines.extend(["", "Issues by affected device", RULE])
        for issue, names in affected.items():
            lines.append(f"* {issue} ({', '.join(names)})")

    return "\n".join(lines) + "\n"


def build_json_report(devices: Sequence[Device], *, generated_at: datetime | None = None) -> str:
    payload = {
        "generated_at": _as_timestamp(generated_at),
        "device_count": len(devices),
        "health_score": aggregate_health_score(devices),
        "levels": count_by_level(devices),
        "devices": [device.to_dict() for device in devices],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def generate_report(devices: Sequence[Device], fmt: str = "text", *, generated_at: datetime | None = None) -> str:
    """Render a report in ``text`` or ``json`` format."""
    if fmt == "text":
        return build_text_report(devices, generated_at=generated_at)
    if fmt == "json":
        return build_json_report(devices, generated_at=generated_at)
    raise ValueError(f"unknown report format {fmt!r}; expected one of {', '.join(REPORT_FORMATS)}")


def write_report(devices: Sequence[Device], output_path: str | Path, fmt: str = "text") -> Path:
    return export_text_document(output_path, generate_report(devices, fmt))


def export_devices_to_csv(devices: Iterable[Device], output_path: str | Path) -> Path:
    """Export devices to CSV using pandas."""
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    dataframe = pd.DataFrame(device_rows(devices))
    dataframe.to_csv(target, index=False)
    return target


def export_devices_to_xlsx(
    devices: Iterable[Device],
    output_path: str | Path,
    *,
    history: Iterable[dict[str, Any]] | None = None,
) -> Path:
    """Export devices, and optionally scan history, to XLSX sheets."""
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    dataframe = pd.DataFrame(device_rows(devices))
    history_df = pd.DataFrame(list(history or []))

    with pd.ExcelWriter(target) as writer:
        dataframe.to_excel(writer, sheet_name="devices", index=False)
        if not history_df.empty:
            history_df.to_excel(writer, sheet_name="scan_history", index=False)
    return target
