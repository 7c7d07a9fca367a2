"""Adapters that invoke an external scan engine and stream its progress."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

from .ip_utils import default_subnet
from .models import Device, ScanLevel
from .progress import ProgressChannel

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 400


class ScanEngineError(Exception):
    """Base class for every failure reported while running a scan engine."""


class ScanEngineUnavailable(ScanEngineError):
    """The engine could not be invoked at all."""


class ScanEngineFailure(ScanEngineError):
    """The engine ran but reported an error or spoke an invalid protocol."""


class ScanCancelled(ScanEngineFailure):
    """The engine run was cancelled or terminated from outside."""


class ScanEngine(Protocol):
    async def scan(self, level: ScanLevel, channel: ProgressChannel) -> Sequence[Device | Mapping[str, Any]]:
        """Run one scan, emitting progress on ``channel``, and return raw devices."""


def coerce_devices(records: Iterable[Device | Mapping[str, Any]]) -> list[Device]:
    """Parse raw engine records into :class:`Device` objects."""
    devices: list[Device] = []
    for index, record in enumerate(records):
        if isinstance(record, Device):
            devices.append(record)
            continue
        if not isinstance(record, Mapping):
            raise ScanEngineFailure(f"device record #{index} is not an object")
        try:
            devices.append(Device.from_dict(record))
        except (KeyError, TypeError, ValueError) as exc:
            raise ScanEngineFailure(f"device record #{index} is malformed: {exc}") from exc
    return devices


class ExternalProcessEngine:
    """Run an engine executable that reports over JSON lines on stdout.

    Each line is one object with a ``type`` of ``progress``, ``result`` or
    ``error``. The process is killed if the caller stops waiting for it.
    """

    def __init__(self, command: Sequence[str], *, subnet: str | None = None) -> None:
        if not command:
            raise ValueError("engine command must not be empty")
        self.command = list(command)
        self.subnet = subnet

    def _resolve_subnet(self) -> str | None:
        if not self.subnet:
            return None
        if self.subnet.lower() != "auto":
            return self.subnet
        network = default_subnet()
        return str(network) if network else None

    def build_command(self, level: ScanLevel) -> list[str]:
        argv = [*self.command, "--level", level.value]
        subnet = self._resolve_subnet()
        if subnet:
            argv.extend(["--subnet", subnet])
        return argv

    async def scan(self, level: ScanLevel, channel: ProgressChannel) -> list[Device]:
        argv = self.build_command(level)
        logger.info("starting scan engine: %s", " ".join(argv))
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ScanEngineUnavailable(f"cannot start scan engine {argv[0]!r}: {exc}") from exc

        if proc.stdout is None or proc.stderr is None:
            proc.kill()
            await proc.wait()
            raise ScanEngineFailure("scan engine output pipes are not available")
        stderr_task = asyncio.ensure_future(proc.stderr.read())
        try:
            records = await self._read_messages(proc.stdout, channel)
            returncode = await proc.wait()
            stderr = (await stderr_task).decode("utf-8", errors="replace").strip()
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()
            if not stderr_task.done():
                stderr_task.cancel()

        if returncode < 0:
            raise ScanCancelled(f"scan engine terminated by signal {-returncode}")
        if returncode != 0:
            detail = stderr[-STDERR_TAIL_CHARS:] or "no diagnostics"
            raise ScanEngineFailure(f"scan engine exited with status {returncode}: {detail}")
        if records is None:
            raise ScanEngineFailure("scan engine finished without a result")
        return coerce_devices(records)

    async def _read_messages(
        self,
        stream: asyncio.StreamReader,
        channel: ProgressChannel,
    ) -> list[Any] | None:
        records: list[Any] | None = None
        while True:
            line = await stream.readline()
            if not line:
                return records
            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                message = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ScanEngineFailure(f"malformed engine output: {text[:80]!r}") from exc
            if not isinstance(message, dict):
                raise ScanEngineFailure(f"malformed engine output: {text[:80]!r}")

            kind = str(message.get("type") or "")
            if kind == "progress":
                try:
                    progress = int(message.get("progress") or 0)
                except (TypeError, ValueError) as exc:
                    raise ScanEngineFailure(f"malformed progress value: {message.get('progress')!r}") from exc
                channel.emit(str(message.get("phase") or ""), progress)
            elif kind == "result":
                devices = message.get("devices")
                if not isinstance(devices, list):
                    raise ScanEngineFailure("scan engine result has no device list")
                records = devices
            elif kind == "error":
                raise ScanEngineFailure(str(message.get("detail") or "scan engine reported an error"))
            else:
                logger.debug("ignoring engine message of type %r", kind)


ScanFunction = Callable[[ScanLevel, Callable[[str, int], None]], Iterable[Device | Mapping[str, Any]]]


class ThreadedScanEngine:
    """Run a blocking scan callable on a worker thread.

    The callable receives the level and an ``emit(phase, progress)`` function
    that is safe to call from that thread.
    """

    def __init__(self, scan_fn: ScanFunction) -> None:
        self._scan_fn = scan_fn

    def _run(self, level: ScanLevel, emit: Callable[[str, int], None]) -> list[Device | Mapping[str, Any]]:
        return list(self._scan_fn(level, emit))

    async def scan(self, level: ScanLevel, channel: ProgressChannel) -> list[Device]:
        try:
            records = await asyncio.to_thread(self._run, level, channel.emit_threadsafe)
        except ScanEngineError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ScanEngineFailure(str(exc) or exc.__class__.__name__) from exc
        return coerce_devices(records)


class TimeoutEngine:
    """Supervise another engine and report an overrun as an engine failure."""

    def __init__(self, engine: ScanEngine, timeout: float) -> None:
        self.engine = engine
        self.timeout = timeout

    async def scan(self, level: ScanLevel, channel: ProgressChannel) -> Sequence[Device | Mapping[str, Any]]:
        try:
            return await asyncio.wait_for(self.engine.scan(level, channel), self.timeout)
        except asyncio.TimeoutError as exc:
            raise ScanEngineFailure(f"scan engine timed out after {self.timeout:g}s") from exc
