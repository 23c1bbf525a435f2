"""
Common Utilities
================

Shared utility functions for data processing.
"""

import json
import math
from datetime import datetime
from typing import Any, Dict, Optional
import pandas as pd


def read_config(config_path: str) -> Dict:
    """
    Read JSON configuration file.

    Args:
        config_path: Path to config file

    Returns:
        Config dictionary
    """
    with open(config_path, 'r') as f:
        return json.load(f)


def is_missing(value: Any) -> bool:
    """True for None, NaN/NA and blank strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_integer(value: Any) -> Optional[int]:
    """
    Parse an integral code from the forms the Census API and cached
    tables produce: ints, integral floats, numeric or zero-padded strings.

    Args:
        value: Value to parse

    Returns:
        Integer or None if the value is missing, non-numeric or fractional
    """
    if is_missing(value) or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value_str = value.strip()
        try:
            return int(value_str)
        except ValueError:
            pass
        try:
            value = float(value_str)
        except ValueError:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def parse_numeric(value: Any) -> Optional[float]:
    """
    Parse a finite numeric value.

    Args:
        value: Value to parse

    Returns:
        Float or None
    """
    if is_missing(value) or isinstance(value, bool):
        return None

    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return None

    return number if math.isfinite(number) else None


def clean_code(value: Any) -> Optional[str]:
    """
    Normalize a categorical code to a stripped string.

    Args:
        value: Raw code

    Returns:
        Cleaned string or None
    """
    if is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def generate_batch_id() -> str:
    """
    Generate a unique batch ID based on current timestamp.

    Returns:
        Batch ID string
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")
