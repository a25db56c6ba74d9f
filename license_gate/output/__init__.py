"""Output formatters for license-gate."""

from license_gate.output.ndjson import NdjsonReportFormatter
from license_gate.output.report import (
    Reporter,
    ReportOptions,
    exit_status,
    should_emit,
)
from license_gate.output.text import TextReportFormatter, display_license

__all__ = [
    "NdjsonReportFormatter",
    "ReportOptions",
    "Reporter",
    "TextReportFormatter",
    "display_license",
    "exit_status",
    "should_emit",
]
