"""
Ingestion Connectors
====================

Source and cache connectors for the ingestion engine.
"""

from .census_connector import CensusConnector
from .minio_connector import MinIOConnector

__all__ = ["CensusConnector", "MinIOConnector"]
