"""
PUMS Ingestion Engine
=====================

Retrieves the ACS PUMS extract the tabulation runs on:
- Census Data API source (one row per person)
- Optional MinIO cache of the raw and intermediate tables

This engine is responsible ONLY for supplying the raw table.
Deduplication and recoding belong to the processing core.
"""

__version__ = "1.0.0"
