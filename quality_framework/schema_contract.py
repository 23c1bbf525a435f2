"""
Schema Contract Validator
=========================

Validates the raw PUMS extract before it reaches the tabulation core.

Unlike a soft contract, a missing required column stops the run: the
tabulation cannot produce correct totals without it. Extra columns are
logged and ignored.

Features:
- Required column check against the input boundary
- Household completeness (non-null rate per required column)
- Stage comparison (raw rows -> households kept)
"""

import logging
from typing import Dict, Iterable, Optional
from datetime import datetime

import pandas as pd

from processing.exceptions import ValidationError
from processing.normalizer import INPUT_COLUMNS

logger = logging.getLogger(__name__)


class SchemaContract:
    """
    Input schema contract for the raw record table.
    """

    def __init__(self, required_columns: Optional[Iterable[str]] = None):
        """
        Initialize Schema Contract.

        Args:
            required_columns: Columns the input must carry (defaults to the
                              tabulation input boundary)
        """
        self.required_columns = list(required_columns or INPUT_COLUMNS)

    def validate_schema(self, df: pd.DataFrame, table_name: str = "raw_pums") -> Dict:
        """
        Validate DataFrame schema against the required columns.

        Args:
            df: DataFrame to validate
            table_name: Name used in log messages

        Returns:
            Dict with validation results

        Raises:
            ValidationError: if required columns are missing
        """
        source_cols = set(df.columns)
        expected_cols = set(self.required_columns)

        missing_cols = sorted(expected_cols - source_cols)
        new_cols = sorted(source_cols - expected_cols)

        result = {
            "table_name": table_name,
            "timestamp": datetime.now().isoformat(),
            "row_count": len(df),
            "source_columns": list(df.columns),
            "expected_columns": self.required_columns,
            "missing_columns": missing_cols,
            "new_columns": new_cols,
        }

        if missing_cols:
            logger.error(f"Schema contract violated for {table_name}: missing {missing_cols}")
            raise ValidationError(f"{table_name} is missing required columns: {missing_cols}")

        if new_cols:
            logger.info(f"{table_name}: ignoring {len(new_cols)} unmapped columns {new_cols}")

        logger.info(f"Schema contract satisfied for {table_name}: {len(df)} rows")
        return result


class DimensionMetrics:
    """
    Quality dimension metrics for the raw and normalized tables.
    """

    def calculate_completeness(self, df: pd.DataFrame, columns: Optional[Iterable[str]] = None) -> Dict:
        """Calculate completeness (non-null rate) for each column."""
        columns = list(columns or df.columns)
        completeness = {
            "score": 100.0,
            "columns": {}
        }

        scores = []
        for col in columns:
            null_count = int(df[col].isna().sum())
            complete_rate = round((1 - null_count / len(df)) * 100, 2) if len(df) > 0 else 100.0
            scores.append(complete_rate)
            completeness["columns"][col] = {
                "null_count": null_count,
                "complete_rate": complete_rate
            }

        completeness["score"] = round(sum(scores) / len(scores), 2) if scores else 100.0
        return completeness

    def compare_stages(
        self,
        source_df: pd.DataFrame,
        target_df: pd.DataFrame,
        table_name: str,
        key_column: str = "SERIALNO"
    ) -> Dict:
        """
        Compare row and key counts between two stages (e.g. raw vs normalized).

        Returns consistency metrics showing data flow integrity.
        """
        comparison = {
            "table_name": table_name,
            "timestamp": datetime.now().isoformat(),
            "source_rows": len(source_df),
            "target_rows": len(target_df),
            "row_retention_rate": round(len(target_df) / len(source_df) * 100, 2) if len(source_df) else 100.0,
        }

        if key_column in source_df.columns and key_column in target_df.columns:
            source_keys = set(source_df[key_column].dropna().astype(str))
            target_keys = set(target_df[key_column].dropna().astype(str))
            comparison["source_unique_keys"] = len(source_keys)
            comparison["target_unique_keys"] = len(target_keys)
            comparison["dropped_keys"] = len(source_keys - target_keys)
            comparison["new_keys"] = len(target_keys - source_keys)

        logger.info(
            f"{table_name}: {comparison['source_rows']} -> {comparison['target_rows']} rows "
            f"({comparison['row_retention_rate']}% retained)"
        )
        return comparison
