"""Scan session state, observable stores and the scan orchestrator."""

from .orchestrator import ScanOrchestrator
from .session import PHASE_COMPLETE, PHASE_INITIALIZING, ScanSession, is_error_phase
from .stores import Derived, ReadOnly, Writable

__all__ = [
    "Derived",
    "PHASE_COMPLETE",
    "PHASE_INITIALIZING",
    "ReadOnly",
    "ScanOrchestrator",
    "ScanSession",
    "Writable",
    "is_error_phase",
]
