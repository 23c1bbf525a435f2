"""
Common Code Module
==================

Shared utilities and functions for data processing pipelines.
"""

from .utils import (
    read_config,
    is_missing,
    parse_integer,
    parse_numeric,
    clean_code,
    generate_batch_id
)

__all__ = [
    "read_config",
    "is_missing",
    "parse_integer",
    "parse_numeric",
    "clean_code",
    "generate_batch_id"
]
