"""
Reporting module for Tollgate.

This module renders a persisted token for people and programs.

Output formats:
    - Console: Rich terminal output with capability table and top holders
    - JSON: Structured output with identity, settings, holders and events

Example:
    from tollgate.report import generate_console_report, generate_json_report

    generate_console_report("tollgate.db", verbose=True)
    print(generate_json_report("tollgate.db", include_events=True))
"""

from tollgate.report.console import format_amount, format_bps, generate_console_report
from tollgate.report.json import build_report_dict, generate_json_report, serialize_event

__all__ = [
    "build_report_dict",
    "format_amount",
    "format_bps",
    "generate_console_report",
    "generate_json_report",
    "serialize_event",
]
