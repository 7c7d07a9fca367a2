"""Command-line entrypoint for NetSentry."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Callable, Sequence, TextIO

from netsentry.export import (
    REPORT_FORMATS,
    export_devices_to_csv,
    export_devices_to_xlsx,
    scan_log_hook,
    write_report,
)
from netsentry.scanner.models import Device, ScanLevel, ScanStatus
from netsentry.scheduler.jobs import build_scheduler, schedule_recurring_scan
from netsentry.settings import ScanSettings, build_engine, load_settings
from netsentry.state import ScanOrchestrator, ScanSession, is_error_phase
from netsentry.storage import list_scan_history, record_scan

logger = logging.getLogger("netsentry")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="netsentry", description="Run and track local network security scans.")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_engine_options(command: argparse.ArgumentParser) -> None:
        command.add_argument("--engine", help="scan engine command line")
        command.add_argument("--timeout", type=float, help="seconds before the engine run is abandoned")
        command.add_argument("--subnet", help="CIDR passed to the engine, or 'auto'")
        command.add_argument("--level", choices=[level.value for level in ScanLevel])
        command.add_argument("--no-history", action="store_true", help="do not record scans in the database")

    scan = sub.add_parser("scan", help="run a single scan")
    add_engine_options(scan)
    scan.add_argument("--report", help="write a report to this path")
    scan.add_argument("--format", choices=REPORT_FORMATS, default="text", help="report format")
    scan.add_argument("--csv", help="write the device list as CSV")
    scan.add_argument("--xlsx", help="write devices and recent scan history as XLSX")

    history = sub.add_parser("history", help="show recent scans")
    history.add_argument("--limit", type=int, default=20)

    watch = sub.add_parser("watch", help="scan on a fixed interval until interrupted")
    add_engine_options(watch)
    watch.add_argument("--interval", type=int, help="minutes between scans")
    return parser


def _settings_from_args(args: argparse.Namespace) -> ScanSettings:
    overrides: dict[str, Any] = {
        "engine_command": args.engine,
        "engine_timeout": args.timeout,
        "subnet": args.subnet,
        "level": args.level,
        "schedule_interval_minutes": getattr(args, "interval", None),
    }
    return load_settings(overrides)


def _build_orchestrator(args: argparse.Namespace, settings: ScanSettings) -> ScanOrchestrator:
    orchestrator = ScanOrchestrator(build_engine(settings), ScanSession(), level=settings.level)
    orchestrator.add_finish_hook(scan_log_hook(settings.scan_log_path))
    if not args.no_history:
        orchestrator.add_finish_hook(record_scan)
    return orchestrator


def _progress_printer(stream: TextIO) -> Callable[[ScanStatus], None]:
    last: tuple[int, str] | None = None

    def _print(status: ScanStatus) -> None:
        nonlocal last
        key = (status.progress, status.current_phase)
        if not status.current_phase or key == last:
            return
        last = key
        stream.write(f"[{status.progress:3d}%] {status.current_phase}\n")
        stream.flush()

    return _print


def _print_devices(devices: Sequence[Device], score: int, stream: TextIO) -> None:
    for device in devices:
        name = device.name or device.vendor or "Unknown"
        stream.write(f"{device.ip:<16} {device.mac:<18} {device.security_level.value:<8} {name}\n")
    stream.write(f"{len(devices)} devices, health score {score}/100\n")


def run_scan_command(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    orchestrator = _build_orchestrator(args, settings)
    session = orchestrator.session
    unsubscribe = session.status.subscribe(_progress_printer(sys.stderr))
    try:
        asyncio.run(orchestrator.start_scan())
    finally:
        unsubscribe()

    status = session.status.get()
    if is_error_phase(status.current_phase):
        sys.stderr.write(f"{status.current_phase}\n")
        return 1

    devices = session.devices.get()
    _print_devices(devices, session.health_score.get(), sys.stdout)
    if args.report:
        logger.info("report written to %s", write_report(devices, args.report, args.format))
    if args.csv:
        logger.info("device list written to %s", export_devices_to_csv(devices, args.csv))
    if args.xlsx:
        target = export_devices_to_xlsx(devices, args.xlsx, history=list_scan_history())
        logger.info("workbook written to %s", target)
    return 0


def run_history_command(args: argparse.Namespace) -> int:
    for entry in list_scan_history(args.limit):
        outcome = f"error: {entry['error']}" if entry["error"] else f"score {entry['health_score']}"
        sys.stdout.write(f"{entry['finished_at']}  {entry['device_count']:>4} devices  {outcome}\n")
    return 0


async def _watch(orchestrator: ScanOrchestrator, minutes: int) -> None:
    scheduler = build_scheduler()
    schedule_recurring_scan(scheduler, orchestrator, minutes=minutes, run_immediately=True)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        await orchestrator.shutdown()


def run_watch_command(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    orchestrator = _build_orchestrator(args, settings)
    orchestrator.session.status.subscribe(_progress_printer(sys.stderr))
    try:
        asyncio.run(_watch(orchestrator, settings.schedule_interval_minutes))
    except KeyboardInterrupt:
        logger.info("watch stopped")
    return 0


COMMANDS = {
    "scan": run_scan_command,
    "history": run_history_command,
    "watch": run_watch_command,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Application entrypoint."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.command](args)
    except ValueError as exc:
        sys.stderr.write(f"netsentry: {exc}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())
