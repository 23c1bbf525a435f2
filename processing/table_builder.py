"""
Table Builder
=============

Pivots aggregated cells into wide rows: one column per vehicle category
(0..6, zero-filled), a row total, and one proportion column per category.

Proportions are rounded to 4 decimal places with round-half-to-even applied
to the exact decimal value of count / total, so ties such as 0.00005 always
round the same way regardless of platform.
"""

import logging
import math
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Dict, Iterable, List

import pandas as pd

from .aggregator import AggregatedCells
from .exceptions import TabulationError
from .models import GroupingKey, GroupKey, WideRow, VEHICLE_CATEGORIES

logger = logging.getLogger(__name__)

PROPORTION_PLACES = Decimal("0.0001")


def round_proportion(count: float, total: float) -> float:
    """count / total rounded half-to-even to 4 places."""
    if total == 0:
        raise TabulationError("cannot compute proportion of a zero total")
    quotient = Decimal(count) / Decimal(total)
    return float(quotient.quantize(PROPORTION_PLACES, rounding=ROUND_HALF_EVEN))


def build_row(key: GroupKey, counts: Dict[int, float]) -> WideRow:
    """
    Build one WideRow from the counts observed for a key.

    Raises:
        TabulationError: if the row total is zero
    """
    values = [counts.get(v, 0.0) for v in VEHICLE_CATEGORIES]
    total = math.fsum(values)
    if total <= 0:
        raise TabulationError(
            f"row {key.tenure.value}/{key.income_bracket.value}"
            f"{'/' + key.subarea if key.subarea else ''} has total {total}"
        )

    fields = {f"vehicles_{v}": value for v, value in zip(VEHICLE_CATEGORIES, values)}
    fields.update({
        f"vehicles_{v}_prop": round_proportion(value, total)
        for v, value in zip(VEHICLE_CATEGORIES, values)
    })
    return WideRow(key=key, total=total, **fields)


def build_table(cells: AggregatedCells) -> List[WideRow]:
    """
    Pivot aggregated cells into WideRows.

    Args:
        cells: Output of aggregate()

    Returns:
        Rows ordered by tenure, income bracket, then subarea
    """
    by_key: Dict[GroupKey, Dict[int, float]] = {}
    for (key, vehicles), count in cells.items():
        by_key.setdefault(key, {})[vehicles] = count

    rows = [build_row(key, by_key[key]) for key in sorted(by_key, key=GroupKey.sort_key)]
    logger.info(f"Built {len(rows)} wide rows")
    return rows


def rows_to_frame(rows: Iterable[WideRow], key: GroupingKey) -> pd.DataFrame:
    """Render WideRows with the report column order."""
    columns = (
        list(key.columns)
        + [f"vehicles_{v}" for v in VEHICLE_CATEGORIES]
        + ["total"]
        + [f"vehicles_{v}_prop" for v in VEHICLE_CATEGORIES]
    )
    return pd.DataFrame([row.to_dict(key) for row in rows], columns=columns)
