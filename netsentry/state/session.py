"""Process-wide scan session state observed by the presentation layer."""

from __future__ import annotations

from netsentry.intel.risk import aggregate_health_score
from netsentry.scanner.models import Device, ScanStatus

from .stores import Derived, ReadOnly, Writable

PHASE_INITIALIZING = "initializing"
PHASE_COMPLETE = "complete"
ERROR_PREFIX = "error: "


def error_phase(detail: str) -> str:
    return ERROR_PREFIX + (detail or "unknown failure")


def is_error_phase(phase: str) -> bool:
    return phase.startswith(ERROR_PREFIX)


def _clamp_progress(value: int) -> int:
    return max(0, min(100, int(value)))


class ScanSession:
    """Single source of truth for scan status, devices and health score.

    Mutation methods are meant for the orchestrator and the progress handler;
    observers use the read-only views exposed as properties.
    """

    def __init__(self) -> None:
        self._status: Writable[ScanStatus] = Writable(ScanStatus())
        self._devices: Writable[tuple[Device, ...]] = Writable(())
        self._health_score = Derived(self._devices, aggregate_health_score)

    @property
    def status(self) -> ReadOnly[ScanStatus]:
        return self._status.readonly()

    @property
    def devices(self) -> ReadOnly[tuple[Device, ...]]:
        return self._devices.readonly()

    @property
    def health_score(self) -> ReadOnly[int]:
        return ReadOnly(self._health_score)

    @property
    def is_scanning(self) -> bool:
        return self._status.get().is_scanning

    def begin(self) -> None:
        self._status.set(ScanStatus(is_scanning=True, progress=0, current_phase=PHASE_INITIALIZING))
        self._devices.set(())

    def apply_progress(self, phase: str, progress: int) -> None:
        """Record a progress event; ``is_scanning`` is left untouched.

        The phase is last-write-wins. Progress is clamped to 0-100 and never
        moves backwards within a session.
        """
        current = self._status.get()
        self._status.set(
            ScanStatus(
                is_scanning=current.is_scanning,
                progress=max(current.progress, _clamp_progress(progress)),
                current_phase=phase,
            )
        )

    def replace_devices(self, devices: tuple[Device, ...]) -> None:
        self._devices.set(devices)

    def fail(self, detail: str) -> None:
        current = self._status.get()
        self._status.set(ScanStatus(is_scanning=current.is_scanning, progress=100, current_phase=error_phase(detail)))

    def finish(self) -> None:
        current = self._status.get()
        phase = current.current_phase if is_error_phase(current.current_phase) else PHASE_COMPLETE
        self._status.set(ScanStatus(is_scanning=False, progress=100, current_phase=phase))
