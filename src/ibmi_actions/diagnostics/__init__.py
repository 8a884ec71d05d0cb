"""EVFEVENT parsing and diagnostic placement."""

from ibmi_actions.diagnostics.evfevent import format_name, parse_evfevent
from ibmi_actions.diagnostics.extractor import (
    DiagnosticCollection,
    DiagnosticsExtractor,
    to_diagnostic,
    to_diagnostics,
)

__all__ = [
    "DiagnosticCollection",
    "DiagnosticsExtractor",
    "format_name",
    "parse_evfevent",
    "to_diagnostic",
    "to_diagnostics",
]
