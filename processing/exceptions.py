"""
Pipeline Exceptions
===================

Errors raised by the tabulation core. None of them are recoverable within
a run: the report is either produced in full or not at all.
"""

from typing import Any, Optional


class TabulationPipelineError(Exception):
    """Marker base for every fault raised by the tabulation pipeline."""


class ValidationError(TabulationPipelineError, ValueError):
    """
    Raised when an input record or table cannot be normalized.

    Attributes:
        household_id: Identifier of the offending household (if known)
        field: Input column that failed validation
        value: Raw value that was rejected
    """

    def __init__(
        self,
        message: str,
        household_id: Optional[str] = None,
        field: Optional[str] = None,
        value: Any = None
    ):
        self.household_id = household_id
        self.field = field
        self.value = value
        if household_id is not None:
            message = f"household {household_id}: {message}"
        super().__init__(message)


class TabulationError(TabulationPipelineError, ArithmeticError):
    """Raised when a derived column cannot be computed (zero-total row)."""
