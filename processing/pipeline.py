"""
Tabulation Pipeline
===================

Normalizer -> Aggregator -> Table Builder, run once per grouping key.
Rollups are re-aggregated from the normalized records rather than summed
from the by-subarea rows.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .aggregator import aggregate
from .models import GroupingKey, HouseholdRecord, NormalizedRecord, ReportTables, Tenure, WideRow
from .normalizer import normalize_records
from .table_builder import build_table, rows_to_frame

logger = logging.getLogger(__name__)

# Report sheet name -> (ReportTables attribute, grouping key)
REPORT_SHEETS = OrderedDict([
    ("Renter households by PUMA", ("renter_by_subarea", GroupingKey.BY_SUBAREA)),
    ("Renter households (total)", ("renter_total", GroupingKey.ROLLUP)),
    ("Homeowner households by PUMA", ("homeowner_by_subarea", GroupingKey.BY_SUBAREA)),
    ("Homeowner households (total)", ("homeowner_total", GroupingKey.ROLLUP)),
])


def tabulate(records: Iterable[NormalizedRecord], key: GroupingKey) -> List[WideRow]:
    """Aggregate and pivot normalized records for one grouping key."""
    return build_table(aggregate(records, key))


def _split_by_tenure(rows: List[WideRow], tenure: Tenure) -> List[WideRow]:
    return [row for row in rows if row.key.tenure is tenure]


def tables_from_normalized(records: List[NormalizedRecord]) -> ReportTables:
    """Build the four report tables from already-normalized records."""
    by_subarea = tabulate(records, GroupingKey.BY_SUBAREA)
    rollup = tabulate(records, GroupingKey.ROLLUP)

    return ReportTables(
        renter_by_subarea=_split_by_tenure(by_subarea, Tenure.RENTER),
        renter_total=_split_by_tenure(rollup, Tenure.RENTER),
        homeowner_by_subarea=_split_by_tenure(by_subarea, Tenure.HOMEOWNER),
        homeowner_total=_split_by_tenure(rollup, Tenure.HOMEOWNER),
    )


def build_report_tables(
    records: Iterable[HouseholdRecord],
    subareas: Optional[Iterable[str]] = None
) -> ReportTables:
    """
    Run the full tabulation.

    Args:
        records: Raw household records (person-level repetition allowed)
        subareas: Optional allowed subarea codes

    Returns:
        ReportTables with all four tables

    Raises:
        ValidationError: malformed input
        TabulationError: zero-total row
    """
    return tables_from_normalized(normalize_records(records, subareas))


def report_frames(tables: ReportTables) -> Dict[str, pd.DataFrame]:
    """Report tables as DataFrames keyed by sheet name, in sheet order."""
    frames = OrderedDict()
    for sheet_name, (attr, key) in REPORT_SHEETS.items():
        frames[sheet_name] = rows_to_frame(getattr(tables, attr), key)
    return frames


def build_report_frames(
    records: Iterable[HouseholdRecord],
    subareas: Optional[Iterable[str]] = None
) -> Dict[str, pd.DataFrame]:
    """build_report_tables() rendered as DataFrames keyed by sheet name."""
    return report_frames(build_report_tables(records, subareas))
