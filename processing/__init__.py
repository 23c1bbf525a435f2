"""
Processing Module
=================

Tabulation core for the vehicle ownership report.

Stages:
- normalizer: deduplicate households, drop non-housing units, recode tenure/income
- aggregator: weighted counts by (PUMA, tenure, income, vehicles) or rollup key
- table_builder: pivot vehicle categories to columns, totals and proportions
- pipeline: the three stages wired into the four report tables
"""

from .exceptions import TabulationError, TabulationPipelineError, ValidationError
from .models import (
    GroupingKey,
    GroupKey,
    HouseholdRecord,
    IncomeBracket,
    NormalizedRecord,
    ReportTables,
    Tenure,
    WideRow,
)
from .normalizer import normalize_records, records_from_frame
from .aggregator import aggregate
from .table_builder import build_table, rows_to_frame
from .pipeline import build_report_frames, build_report_tables, report_frames

__all__ = [
    "TabulationError",
    "TabulationPipelineError",
    "ValidationError",
    "GroupingKey",
    "GroupKey",
    "HouseholdRecord",
    "IncomeBracket",
    "NormalizedRecord",
    "ReportTables",
    "Tenure",
    "WideRow",
    "normalize_records",
    "records_from_frame",
    "aggregate",
    "build_table",
    "rows_to_frame",
    "build_report_frames",
    "build_report_tables",
    "report_frames",
]
