"""
Observability Module
====================

Structured run-event logging for the tabulation job.

Usage:
    from observability import StructuredLogger, new_trace_id

    logger = StructuredLogger("vehicle_report")
    with logger.context(run_id=new_trace_id()):
        logger.info("Pipeline started")
"""

from .logging.structured_logger import StructuredLogger, JsonFormatter, new_trace_id

__version__ = "1.0.0"
__all__ = ["StructuredLogger", "JsonFormatter", "new_trace_id"]
