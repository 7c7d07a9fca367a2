"""Export utilities: scan log, security reports and spreadsheet writers."""

from .logging import append_scan_result, read_scan_log, scan_log_hook
from .reports import (
    REPORT_FORMATS,
    device_rows,
    export_devices_to_csv,
    export_devices_to_xlsx,
    generate_report,
    write_report,
)
from .writers import export_text_document

__all__ = [
    "REPORT_FORMATS",
    "append_scan_result",
    "device_rows",
    "export_devices_to_csv",
    "export_devices_to_xlsx",
    "export_text_document",
    "generate_report",
    "read_scan_log",
    "scan_log_hook",
    "write_report",
]
