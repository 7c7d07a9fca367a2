"""Drives one scan session end to end against an external engine."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
from typing import Callable, Iterable
import uuid

from netsentry.scanner.engine import ScanEngine, coerce_devices
from netsentry.scanner.models import ScanLevel, ScanOutcome
from netsentry.scanner.normalizer import normalize_devices
from netsentry.scanner.progress import ProgressChannel, ProgressEvent, Subscription

from .session import ScanSession

logger = logging.getLogger(__name__)

FinishHook = Callable[[ScanOutcome], None]


class ScanOrchestrator:
    """Run scans one at a time and keep :class:`ScanSession` in sync.

    Engine failures, timeouts and cancellations all end in the same terminal
    error state; the caller retries by starting a new scan.
    """

    def __init__(
        self,
        engine: ScanEngine,
        session: ScanSession | None = None,
        *,
        level: ScanLevel = ScanLevel.ACTIVE,
        on_finished: Iterable[FinishHook] = (),
    ) -> None:
        self.engine = engine
        self.session = session or ScanSession()
        self.channel: ProgressChannel | None = None
        self.level = level
        self._finish_hooks = list(on_finished)
        self._task: asyncio.Task[None] | None = None
        self.last_outcome: ScanOutcome | None = None

    def add_finish_hook(self, hook: FinishHook) -> None:
        self._finish_hooks.append(hook)

    def _on_progress(self, event: ProgressEvent) -> None:
        self.session.apply_progress(event.phase, event.progress)

    async def start_scan(self) -> None:
        """Run one scan session; a call made while one is running is ignored."""
        if self.session.is_scanning:
            logger.info("scan already in progress; ignoring start request")
            return

        scan_id = uuid.uuid4().hex
        started_at = datetime.now(timezone.utc)
        self.session.begin()
        logger.info("scan %s started (level=%s)", scan_id, self.level.value)

        # One channel per scan: an engine abandoned by a timeout cannot reach
        # a later session.
        channel = self.channel = ProgressChannel()
        subscription: Subscription | None = None
        error: str | None = None
        try:
            subscription = await channel.listen(self._on_progress)
            records = await self.engine.scan(self.level, channel)
            devices = normalize_devices(coerce_devices(records))
            self.session.replace_devices(devices)
        except asyncio.CancelledError:
            error = "scan cancelled"
            logger.warning("scan %s cancelled", scan_id)
            self.session.fail(error)
            raise
        except Exception as exc:  # noqa: BLE001
            error = str(exc) or exc.__class__.__name__
            logger.warning("scan %s failed: %s", scan_id, error)
            self.session.fail(error)
        finally:
            if subscription is not None:
                subscription.close()
            channel.close()
            self.session.finish()

        outcome = ScanOutcome(
            scan_id=scan_id,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            devices=self.session.devices.get(),
            health_score=self.session.health_score.get(),
            error=error,
        )
        logger.info(
            "scan %s finished: %d devices, health score %d",
            scan_id,
            len(outcome.devices),
            outcome.health_score,
        )
        self.last_outcome = outcome
        for hook in self._finish_hooks:
            hook(outcome)

    def run_scan(self) -> asyncio.Task[None] | None:
        """Schedule :meth:`start_scan` as a task unless a scan is running."""
        pending = self._task is not None and not self._task.done()
        if pending or self.session.is_scanning:
            logger.info("scan already in progress; not scheduling another")
            return None
        self._task = asyncio.ensure_future(self.start_scan())
        return self._task

    async def shutdown(self) -> None:
        """Cancel a running scan and wait until its subscription is closed."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
