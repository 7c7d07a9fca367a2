"""Scanner package: device models, engine adapters, progress channel and ordering."""

from .engine import (
    ExternalProcessEngine,
    ScanCancelled,
    ScanEngine,
    ScanEngineError,
    ScanEngineFailure,
    ScanEngineUnavailable,
    ThreadedScanEngine,
    TimeoutEngine,
)
from .models import Device, DeviceType, ScanLevel, ScanOutcome, ScanStatus, SecurityLevel
from .normalizer import normalize_devices
from .progress import ProgressChannel, ProgressEvent, Subscription

__all__ = [
    "Device",
    "DeviceType",
    "ExternalProcessEngine",
    "ProgressChannel",
    "ProgressEvent",
    "ScanCancelled",
    "ScanEngine",
    "ScanEngineError",
    "ScanEngineFailure",
    "ScanEngineUnavailable",
    "ScanLevel",
    "ScanOutcome",
    "ScanStatus",
    "SecurityLevel",
    "Subscription",
    "ThreadedScanEngine",
    "TimeoutEngine",
    "normalize_devices",
]
