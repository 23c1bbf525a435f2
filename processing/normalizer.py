"""
Record Normalizer
=================

Turns the person-level PUMS extract into one recoded record per occupied
housing unit:

1. Deduplicate on SERIALNO (household fields repeat for every person)
2. Drop group quarters / vacant units (HINCP == -60000)
3. Recode TEN to renter/homeowner and HINCP to an AMI bracket
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .common_code.utils import clean_code, parse_integer, parse_numeric
from .exceptions import ValidationError
from .models import (
    HouseholdRecord,
    IncomeBracket,
    NormalizedRecord,
    MAX_VEHICLE_CATEGORY,
    NON_HOUSING_UNIT_INCOME,
    TENURE_CODES,
    Tenure,
)

logger = logging.getLogger(__name__)

# Input boundary: PUMS column -> HouseholdRecord field
INPUT_COLUMNS = {
    "SERIALNO": "household_id",
    "WGTP": "weight",
    "PUMA": "subarea",
    "VEH": "vehicles",
    "TEN": "tenure_code",
    "HINCP": "income",
}

SUBAREA_CODE_WIDTH = 5


def records_from_frame(df: pd.DataFrame) -> List[HouseholdRecord]:
    """
    Convert a raw PUMS DataFrame into HouseholdRecords.

    Args:
        df: Table with at least the INPUT_COLUMNS columns

    Returns:
        Records in table order
    """
    missing = [col for col in INPUT_COLUMNS if col not in df.columns]
    if missing:
        raise ValidationError(f"Input table is missing columns: {missing}")

    frame = df[list(INPUT_COLUMNS)].rename(columns=INPUT_COLUMNS)
    frame = frame.astype(object).where(frame.notna(), None)

    records = []
    for position, row in enumerate(frame.to_dict(orient="records")):
        household_id = clean_code(row.pop("household_id"))
        if household_id is None:
            raise ValidationError(
                f"missing household identifier in input row {position}",
                field="SERIALNO", value=df["SERIALNO"].iloc[position]
            )
        records.append(HouseholdRecord(household_id=household_id, **row))
    return records


def deduplicate_households(records: Iterable[HouseholdRecord]) -> List[HouseholdRecord]:
    """
    Keep the first row per household.

    Repeated rows must agree on every household-level field; a mismatch
    means the extract is not what the tabulation assumes.
    """
    seen: Dict[str, HouseholdRecord] = {}
    total = 0
    for record in records:
        total += 1
        first = seen.get(record.household_id)
        if first is None:
            seen[record.household_id] = record
            continue
        if first.household_fields() != record.household_fields():
            raise ValidationError(
                f"duplicate rows disagree on household fields: "
                f"{first.household_fields()} != {record.household_fields()}",
                household_id=record.household_id,
                field="household_fields",
                value=record.household_fields()
            )

    logger.info(f"Deduplicated: {total} -> {len(seen)} ({total - len(seen)} removed)")
    return list(seen.values())


def recode_tenure(code: Any, household_id: Optional[str] = None) -> Tenure:
    """Map a PUMS TEN code to Tenure; unknown codes are errors."""
    parsed = parse_integer(code)
    if parsed not in TENURE_CODES:
        raise ValidationError(
            f"unrecognized tenure code {code!r}",
            household_id=household_id, field="TEN", value=code
        )
    return TENURE_CODES[parsed]


def recode_vehicles(value: Any, household_id: Optional[str] = None) -> int:
    """Vehicle count as a category 0..6, capping at 6+."""
    parsed = parse_integer(value)
    if parsed is None or parsed < 0:
        raise ValidationError(
            f"vehicle count must be a non-negative integer, got {value!r}",
            household_id=household_id, field="VEH", value=value
        )
    return min(parsed, MAX_VEHICLE_CATEGORY)


def parse_income(value: Any, household_id: Optional[str] = None) -> int:
    parsed = parse_integer(value)
    if parsed is None:
        raise ValidationError(
            f"malformed household income {value!r}",
            household_id=household_id, field="HINCP", value=value
        )
    return parsed


def parse_weight(value: Any, household_id: Optional[str] = None) -> float:
    parsed = parse_numeric(value)
    if parsed is None or parsed <= 0:
        raise ValidationError(
            f"survey weight must be a positive number, got {value!r}",
            household_id=household_id, field="WGTP", value=value
        )
    return parsed


def normalize_subarea(
    value: Any,
    household_id: Optional[str] = None,
    subareas: Optional[Iterable[str]] = None
) -> str:
    code = clean_code(value)
    if code is None:
        raise ValidationError(
            "missing subarea code", household_id=household_id, field="PUMA", value=value
        )
    if code.isdigit():
        code = code.zfill(SUBAREA_CODE_WIDTH)
    if subareas is not None and code not in subareas:
        raise ValidationError(
            f"subarea {code!r} is outside the configured domain",
            household_id=household_id, field="PUMA", value=value
        )
    return code


def normalize_records(
    records: Iterable[HouseholdRecord],
    subareas: Optional[Iterable[str]] = None
) -> List[NormalizedRecord]:
    """
    Deduplicate, filter and recode raw records.

    Args:
        records: Raw rows, one or more per household
        subareas: Optional allowed subarea codes

    Returns:
        One NormalizedRecord per occupied housing unit, in first-seen order

    Raises:
        ValidationError: on any malformed or unrecognized value
    """
    domain = None
    if subareas is not None:
        domain = {normalize_subarea(code) for code in subareas}

    households = deduplicate_households(records)

    normalized = []
    excluded = 0
    for record in households:
        hid = record.household_id
        income = parse_income(record.income, hid)
        if income == NON_HOUSING_UNIT_INCOME:
            excluded += 1
            continue

        normalized.append(NormalizedRecord(
            household_id=hid,
            weight=parse_weight(record.weight, hid),
            subarea=normalize_subarea(record.subarea, hid, domain),
            vehicles=recode_vehicles(record.vehicles, hid),
            tenure=recode_tenure(record.tenure_code, hid),
            income_bracket=IncomeBracket.classify(income),
        ))

    logger.info(f"Filtered non-housing units: {excluded} removed, {len(normalized)} households kept")
    return normalized


def normalized_to_frame(records: Iterable[NormalizedRecord]) -> pd.DataFrame:
    """Tabular view of normalized records, for caching and inspection."""
    return pd.DataFrame(
        [
            {
                "SERIALNO": r.household_id,
                "WGTP": r.weight,
                "PUMA": r.subarea,
                "VEH": r.vehicles,
                "tenure": r.tenure.value,
                "income": r.income_bracket.value,
            }
            for r in records
        ],
        columns=["SERIALNO", "WGTP", "PUMA", "VEH", "tenure", "income"]
    )
