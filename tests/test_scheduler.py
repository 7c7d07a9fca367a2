from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from netsentry.scheduler.jobs import (
    RECURRING_SCAN_JOB_ID,
    build_scheduler,
    clear_schedule_events,
    get_schedule_events,
    run_scheduled_scan,
    schedule_recurring_scan,
)
from netsentry.scanner.engine import ScanEngineFailure
from netsentry.state import ScanOrchestrator

from .conftest import ScriptedEngine


@pytest.fixture(autouse=True)
def _reset_events():
    clear_schedule_events()
    yield
    clear_schedule_events()


@pytest.mark.asyncio
async def test_schedule_recurring_scan_registers_interval_job():
    scheduler = build_scheduler()
    orchestrator = ScanOrchestrator(ScriptedEngine())

    job = schedule_recurring_scan(scheduler, orchestrator, minutes=15)

    assert job.id == RECURRING_SCAN_JOB_ID
    assert job.trigger.interval == timedelta(minutes=15)
    events = get_schedule_events(job_id=RECURRING_SCAN_JOB_ID)
    assert [event["action"] for event in events] == ["scheduled"]
    assert events[0]["metadata"] == {"interval_minutes": 15}


@pytest.mark.asyncio
async def test_scheduled_scan_runs_and_skips_while_busy(example_records):
    gate = asyncio.Event()
    engine = ScriptedEngine(result=example_records, gate=gate)
    orchestrator = ScanOrchestrator(engine)

    first = asyncio.create_task(run_scheduled_scan(orchestrator))
    await asyncio.sleep(0.01)
    skipped = await run_scheduled_scan(orchestrator)
    gate.set()

    assert await first is True
    assert skipped is False
    assert engine.calls == 1
    events = get_schedule_events()
    assert [event["action"] for event in events] == ["triggered", "skipped", "completed"]
    assert events[2]["scan_id"] == orchestrator.last_outcome.scan_id
    assert events[2]["metadata"]["health_score"] == 60
    assert orchestrator.session.health_score.get() == 60


@pytest.mark.asyncio
async def test_scheduled_scan_failure_is_logged_with_scan_id():
    orchestrator = ScanOrchestrator(ScriptedEngine(error=ScanEngineFailure("engine crashed")))

    assert await run_scheduled_scan(orchestrator, "nightly") is True

    triggered, failed = get_schedule_events(job_id="nightly")
    assert triggered["action"] == "triggered"
    assert failed["action"] == "failed"
    assert failed["scan_id"] == orchestrator.last_outcome.scan_id != ""
    assert failed["metadata"]["error"] == "engine crashed"
