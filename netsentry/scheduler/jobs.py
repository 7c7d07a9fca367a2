"""Recurring scan job setup and trigger metadata logging."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from threading import Lock
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from netsentry.state.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

RECURRING_SCAN_JOB_ID = "recurring-scan"

_JOB_EVENTS: list[dict[str, Any]] = []
_JOB_EVENTS_LOCK = Lock()


def build_scheduler() -> AsyncIOScheduler:
    """Create a scheduler that runs jobs on the current asyncio loop."""
    return AsyncIOScheduler()


def log_schedule_event(
    *,
    action: str,
    job_id: str,
    scheduled_for: str | None = None,
    source: str = "scheduler",
    scan_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Store scheduler event metadata for later inspection."""
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "job_id": job_id,
        "scheduled_for": scheduled_for or "",
        "source": source,
        "scan_id": scan_id or "",
        "metadata": dict(metadata or {}),
    }
    with _JOB_EVENTS_LOCK:
        _JOB_EVENTS.append(event)
    return event


def get_schedule_events(*, job_id: str | None = None) -> list[dict[str, Any]]:
    """Return a snapshot of recorded scheduler metadata events."""
    with _JOB_EVENTS_LOCK:
        items = list(_JOB_EVENTS)
    if job_id:
        return [event for event in items if str(event.get("job_id")) == job_id]
    return items


def clear_schedule_events() -> None:
    with _JOB_EVENTS_LOCK:
        _JOB_EVENTS.clear()


async def run_scheduled_scan(orchestrator: ScanOrchestrator, job_id: str = RECURRING_SCAN_JOB_ID) -> bool:
    """Job body: start a scan unless one is already running."""
    task = orchestrator.run_scan()
    if task is None:
        log_schedule_event(action="skipped", job_id=job_id, metadata={"reason": "scan in progress"})
        logger.info("scheduled scan skipped: scan in progress")
        return False
    log_schedule_event(action="triggered", job_id=job_id)
    await task
    outcome = orchestrator.last_outcome
    if outcome is not None:
        log_schedule_event(
            action="completed" if outcome.succeeded else "failed",
            job_id=job_id,
            scan_id=outcome.scan_id,
            metadata={
                "device_count": len(outcome.devices),
                "health_score": outcome.health_score,
                "error": outcome.error or "",
            },
        )
    return True


def schedule_recurring_scan(
    scheduler: AsyncIOScheduler,
    orchestrator: ScanOrchestrator,
    *,
    minutes: int,
    job_id: str = RECURRING_SCAN_JOB_ID,
    run_immediately: bool = False,
) -> Any:
    """Register an interval job that starts a scan every ``minutes``."""
    options: dict[str, Any] = {}
    if run_immediately:
        options["next_run_time"] = datetime.now(timezone.utc)
    job = scheduler.add_job(
        run_scheduled_scan,
        "interval",
        minutes=max(1, int(minutes)),
        args=[orchestrator, job_id],
        id=job_id,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        **options,
    )
    log_schedule_event(
        action="scheduled",
        job_id=job_id,
        scheduled_for=str(getattr(job, "next_run_time", "") or ""),
        metadata={"interval_minutes": max(1, int(minutes))},
    )
    return job
