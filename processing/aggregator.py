"""
Aggregator
==========

Weighted group-by-count: sums WGTP per (grouping key, vehicle category).
Only observed combinations appear in the result.
"""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from .models import GroupingKey, GroupKey, NormalizedRecord

logger = logging.getLogger(__name__)

# (row key, vehicle category) -> weighted household count
AggregatedCells = Dict[Tuple[GroupKey, int], float]


def aggregate(
    records: Iterable[NormalizedRecord],
    key: GroupingKey = GroupingKey.BY_SUBAREA
) -> AggregatedCells:
    """
    Sum survey weights by grouping key and vehicle category.

    Weights are summed with math.fsum so the result is independent of
    record order.

    Args:
        records: Normalized household records
        key: BY_SUBAREA or ROLLUP

    Returns:
        Mapping of (GroupKey, vehicles) to weighted count
    """
    weights: Dict[Tuple[GroupKey, int], List[float]] = defaultdict(list)
    for record in records:
        weights[(record.group_key(key), record.vehicles)].append(record.weight)

    cells = {cell: math.fsum(values) for cell, values in weights.items()}
    logger.info(f"Aggregated {key.value}: {len(cells)} cells")
    return cells


def cells_to_frame(cells: AggregatedCells, key: GroupingKey) -> pd.DataFrame:
    """Long-format view (one row per cell) of an aggregation."""
    rows = []
    for (group, vehicles), count in sorted(
        cells.items(), key=lambda item: (item[0][0].sort_key(), item[0][1])
    ):
        row = {}
        if key is GroupingKey.BY_SUBAREA:
            row["PUMA"] = group.subarea
        row["tenure"] = group.tenure.value
        row["income"] = group.income_bracket.value
        row["VEH"] = vehicles
        row["n"] = count
        rows.append(row)
    return pd.DataFrame(rows, columns=list(key.columns) + ["VEH", "n"])
