"""NetSentry: orchestrates external network scans and tracks device health."""

__version__ = "0.1.0"
