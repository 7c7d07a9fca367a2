"""In-process progress event channel between scan engines and the session."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    phase: str
    progress: int


ProgressHandler = Callable[[ProgressEvent], None]


class Subscription:
    """Handle returned by :meth:`ProgressChannel.listen`.

    ``close`` may be called any number of times, including after the channel
    itself has been closed.
    """

    def __init__(self, channel: "ProgressChannel", handler: ProgressHandler) -> None:
        self._channel: ProgressChannel | None = channel
        self._handler = handler

    @property
    def closed(self) -> bool:
        return self._channel is None

    def deliver(self, event: ProgressEvent) -> None:
        if self._channel is None:
            return
        self._handler(event)

    def close(self) -> None:
        channel, self._channel = self._channel, None
        if channel is not None:
            channel._discard(self)


class ProgressChannel:
    """Fan-out of ``(phase, progress)`` events in emission order.

    Handlers run synchronously on the emitting call. Engines running on worker
    threads use :meth:`emit_threadsafe`, which hops onto the owning loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._subscriptions: list[Subscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def listen(self, handler: ProgressHandler) -> Subscription:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        subscription = Subscription(self, handler)
        if self._closed:
            subscription.close()
        else:
            self._subscriptions.append(subscription)
        return subscription

    def emit(self, phase: str, progress: int) -> None:
        if self._closed:
            return
        event = ProgressEvent(phase=str(phase), progress=int(progress))
        logger.debug("progress %s%% %s", event.progress, event.phase)
        for subscription in list(self._subscriptions):
            subscription.deliver(event)

    def emit_threadsafe(self, phase: str, progress: int) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.emit, phase, progress)

    def close(self) -> None:
        self._closed = True
        for subscription in list(self._subscriptions):
            subscription.close()

    def _discard(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass
