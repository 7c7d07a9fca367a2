"""Value objects shared by the scan engine adapters, session state and exports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping


class ScanLevel(str, Enum):
    """Scan intensity requested from the external engine."""

    PASSIVE = "passive"
    ACTIVE = "active"


class SecurityLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "SecurityLevel":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class DeviceType(str, Enum):
    ROUTER = "router"
    CAMERA = "camera"
    SMART_SPEAKER = "smart_speaker"
    SMART_TV = "smart_tv"
    SMART_PLUG = "smart_plug"
    PRINTER = "printer"
    NAS = "nas"
    COMPUTER = "computer"
    SMARTPHONE = "smartphone"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "DeviceType":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _issue_title(value: Any) -> str:
    if isinstance(value, Mapping):
        return str(value.get("title") or value.get("id") or "")
    return str(value)


@dataclass(frozen=True, slots=True)
class Device:
    """Single device reported by the scan engine. Never mutated after parsing."""

    id: str
    ip: str
    mac: str = ""
    name: str | None = None
    type: DeviceType = DeviceType.UNKNOWN
    vendor: str | None = None
    security_level: SecurityLevel = SecurityLevel.UNKNOWN
    issues: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Device":
        """Build a device from a raw engine record.

        Accepts both snake_case and camelCase keys for the security level and
        device type. Raises ``KeyError`` when ``ip`` is missing.
        """
        ip = str(record["ip"]).strip()
        level = record.get("security_level", record.get("securityLevel"))
        device_type = record.get("type", record.get("device_type"))
        return cls(
            id=str(record.get("id") or ip),
            ip=ip,
            mac=str(record.get("mac") or ""),
            name=_optional_text(record.get("name")),
            type=DeviceType.parse(device_type),
            vendor=_optional_text(record.get("vendor")),
            security_level=SecurityLevel.parse(level),
            issues=tuple(_issue_title(issue) for issue in record.get("issues") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "ip": self.ip,
            "mac": self.mac,
            "vendor": self.vendor,
            "security_level": self.security_level.value,
            "issues": list(self.issues),
        }


@dataclass(frozen=True, slots=True)
class ScanStatus:
    is_scanning: bool = False
    progress: int = 0
    current_phase: str = ""


@dataclass(frozen=True, slots=True)
class ScanOutcome:
    """Summary of a finished scan session, handed to finish hooks."""

    scan_id: str
    started_at: datetime
    finished_at: datetime
    devices: tuple[Device, ...] = ()
    health_score: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def issues_found(self) -> int:
        return sum(len(device.issues) for device in self.devices)

    def summary(self) -> dict[str, Any]:
        return {
            "scan_id": self.scan_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "device_count": len(self.devices),
            "health_score": self.health_score,
            "issues_found": self.issues_found,
            "error": self.error,
            "devices": [device.to_dict() for device in self.devices],
        }
