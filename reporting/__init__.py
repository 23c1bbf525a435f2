"""
Reporting Module
================

Spreadsheet output for the vehicle ownership tabulation.

Usage:
    from reporting import ReportExporter, documentation_frame

    ReportExporter("report.xlsx").export(documentation_frame(), frames)
"""

from .documentation import documentation_frame, documentation_lines
from .excel_exporter import ReportExporter

__all__ = ["ReportExporter", "documentation_frame", "documentation_lines"]
