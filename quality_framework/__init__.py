"""
Quality Framework
=================

Input checks run ahead of the tabulation core:
- Schema contract (required PUMS columns; hard contract)
- Dimension metrics (completeness, stage-to-stage retention)

Usage:
    from quality_framework import SchemaContract, DimensionMetrics

    contract = SchemaContract()
    result = contract.validate_schema(df, "raw_pums")

    metrics = DimensionMetrics()
    scores = metrics.calculate_completeness(df)
"""

from .schema_contract import SchemaContract, DimensionMetrics

__version__ = "1.0.0"
__all__ = [
    "SchemaContract",
    "DimensionMetrics",
]
