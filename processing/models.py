"""
Tabulation Data Model
=====================

Typed records passed between the normalizer, aggregator and table builder.

- HouseholdRecord: one raw row of the PUMS extract (household fields only)
- NormalizedRecord: one deduplicated, recoded occupied housing unit
- WideRow: one pivoted output row with counts, total and proportions
- ReportTables: the four tables written to the report
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# Vehicle categories 0..6; 6 means "6 or more vehicles"
VEHICLE_CATEGORIES = tuple(range(7))
MAX_VEHICLE_CATEGORY = VEHICLE_CATEGORIES[-1]

# HINCP value for group quarters and vacant units
NON_HOUSING_UNIT_INCOME = -60000

# Upper (inclusive) bounds of the AMI brackets: 20/40/60/80% of metro AMI
INCOME_BRACKET_UPPER_BOUNDS = (19320, 38640, 57960, 77280)


class Tenure(str, Enum):
    """Collapsed housing tenure. Declaration order is report order."""
    RENTER = "renter"
    HOMEOWNER = "homeowner"

    @property
    def rank(self) -> int:
        return list(Tenure).index(self)


# PUMS TEN codes
TENURE_CODES: Dict[int, Tenure] = {
    1: Tenure.HOMEOWNER,  # owned with mortgage or loan
    2: Tenure.HOMEOWNER,  # owned free and clear
    3: Tenure.RENTER,     # rented
    4: Tenure.RENTER,     # occupied without payment of rent
}


class IncomeBracket(str, Enum):
    """Household income as a share of area median income, lowest first."""
    AMI_20 = "AMI_20"
    AMI_40 = "AMI_40"
    AMI_60 = "AMI_60"
    AMI_80 = "AMI_80"
    AMI_80_PLUS = "AMI_80plus"

    @property
    def rank(self) -> int:
        return list(IncomeBracket).index(self)

    @classmethod
    def classify(cls, income: int) -> "IncomeBracket":
        """
        Place an income in its bracket.

        Brackets are closed on the right; anything at or below the first
        bound (including negative incomes) is AMI_20.
        """
        brackets = list(cls)
        for bracket, upper in zip(brackets, INCOME_BRACKET_UPPER_BOUNDS):
            if income <= upper:
                return bracket
        return brackets[-1]


class GroupingKey(str, Enum):
    """Dimensions a table is broken out by."""
    BY_SUBAREA = "by_subarea"  # subarea + tenure + income bracket
    ROLLUP = "rollup"          # tenure + income bracket

    @property
    def columns(self) -> Tuple[str, ...]:
        if self is GroupingKey.BY_SUBAREA:
            return ("PUMA", "tenure", "income")
        return ("tenure", "income")


@dataclass(frozen=True)
class HouseholdRecord:
    household_id: str
    weight: Any
    subarea: Any
    vehicles: Any
    tenure_code: Any
    income: Any

    def household_fields(self) -> Tuple:
        return (self.weight, self.subarea, self.vehicles, self.tenure_code, self.income)


@dataclass(frozen=True)
class NormalizedRecord:
    household_id: str
    weight: float
    subarea: str
    vehicles: int
    tenure: Tenure
    income_bracket: IncomeBracket

    def group_key(self, key: GroupingKey) -> "GroupKey":
        subarea = self.subarea if key is GroupingKey.BY_SUBAREA else None
        return GroupKey(tenure=self.tenure, income_bracket=self.income_bracket, subarea=subarea)


@dataclass(frozen=True)
class GroupKey:
    """Identifies one output row. subarea is None for rollups."""
    tenure: Tenure
    income_bracket: IncomeBracket
    subarea: Optional[str] = None

    def sort_key(self) -> Tuple:
        return (self.tenure.rank, self.income_bracket.rank, self.subarea or "")


@dataclass(frozen=True)
class WideRow:
    key: GroupKey
    vehicles_0: float
    vehicles_1: float
    vehicles_2: float
    vehicles_3: float
    vehicles_4: float
    vehicles_5: float
    vehicles_6: float
    total: float
    vehicles_0_prop: float
    vehicles_1_prop: float
    vehicles_2_prop: float
    vehicles_3_prop: float
    vehicles_4_prop: float
    vehicles_5_prop: float
    vehicles_6_prop: float

    @property
    def counts(self) -> List[float]:
        return [getattr(self, f"vehicles_{v}") for v in VEHICLE_CATEGORIES]

    @property
    def proportions(self) -> List[float]:
        return [getattr(self, f"vehicles_{v}_prop") for v in VEHICLE_CATEGORIES]

    def to_dict(self, key: GroupingKey) -> Dict[str, Any]:
        """Flatten to report columns: identifiers, counts, total, proportions."""
        row: Dict[str, Any] = {}
        if key is GroupingKey.BY_SUBAREA:
            row["PUMA"] = self.key.subarea
        row["tenure"] = self.key.tenure.value
        row["income"] = self.key.income_bracket.value
        for v, count in zip(VEHICLE_CATEGORIES, self.counts):
            row[f"vehicles_{v}"] = count
        row["total"] = self.total
        for v, prop in zip(VEHICLE_CATEGORIES, self.proportions):
            row[f"vehicles_{v}_prop"] = prop
        return row


@dataclass(frozen=True)
class ReportTables:
    renter_by_subarea: List[WideRow]
    renter_total: List[WideRow]
    homeowner_by_subarea: List[WideRow]
    homeowner_total: List[WideRow]
