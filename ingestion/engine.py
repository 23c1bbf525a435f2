"""
Ingestion Engine Core
=====================

Supplies the raw PUMS table to the tabulation job, from the MinIO cache
when a copy exists and from the Census Data API otherwise.
"""

import hashlib
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from processing.common_code.utils import read_config
from .connectors.census_connector import CensusConnector
from .connectors.minio_connector import MinIOConnector

logger = logging.getLogger(__name__)

RAW_TABLE = "data_raw"
EXTRACT_DIGEST_LENGTH = 10


class IngestionEngine:
    """
    Raw record loader for the vehicle ownership tabulation.

    Reads the 'source' and 'cache' sections of the job settings.
    """

    def __init__(
        self,
        settings: Optional[Dict] = None,
        settings_path: Optional[str] = None,
        source_connector: Optional[CensusConnector] = None,
        cache_connector: Optional[MinIOConnector] = None
    ):
        """
        Initialize the ingestion engine.

        Args:
            settings: Job settings dict (takes precedence over settings_path)
            settings_path: Path to the job settings JSON
            source_connector: Census connector override
            cache_connector: Cache connector override
        """
        self.settings = settings if settings is not None else read_config(
            settings_path or self._get_default_settings_path()
        )
        self.source_settings = self.settings["source"]
        self.cache_settings = self.settings.get("cache", {})
        self.source_connector = source_connector
        self.cache_connector = cache_connector

    def _get_default_settings_path(self) -> str:
        """Get default settings path."""
        return str(Path(__file__).parent.parent / "jobs" / "job_settings.json")

    @property
    def cache_enabled(self) -> bool:
        return self.cache_connector is not None or self.cache_settings.get("enabled", False)

    @property
    def subareas(self) -> List[str]:
        """Configured PUMA codes."""
        return list(self.source_settings["pumas"])

    def connect(self):
        """Establish connections to source and cache."""
        logger.info("Connecting to source and cache...")

        if self.source_connector is None:
            source_config = dict(self.source_settings.get("connection", {}))
            source_config.setdefault("api_key", os.environ.get("CENSUS_API_KEY"))
            self.source_connector = CensusConnector(source_config)
        self.source_connector.connect()
        logger.info("✓ Census API source ready")

        if self.cache_enabled:
            if self.cache_connector is None:
                self.cache_connector = MinIOConnector(self.cache_settings["connection"])
            self.cache_connector.connect()
            logger.info("✓ Connected to MinIO cache")

    def disconnect(self):
        """Close all connections."""
        if self.source_connector:
            self.source_connector.disconnect()
        logger.info("Connections closed")

    @property
    def raw_table_name(self) -> str:
        """
        Cache name of the raw extract, unique per request.

        Vintage, survey and state are spelled out; the PUMA list and
        variables go into a short digest.
        """
        src = self.source_settings
        request = ",".join(sorted(self.subareas)) + "|" + ",".join(src["variables"])
        digest = hashlib.sha1(request.encode("utf-8")).hexdigest()[:EXTRACT_DIGEST_LENGTH]
        survey = src.get("survey", "acs5")
        return f"{RAW_TABLE}_{survey}_{src['year']}_{src['state']}_{digest}"

    def fetch_raw_records(self) -> pd.DataFrame:
        """Pull the PUMS extract from the Census API."""
        src = self.source_settings
        return self.source_connector.get_pums(
            variables=src["variables"],
            state=src["state"],
            pumas=self.subareas,
            year=src["year"],
            survey=src.get("survey", "acs5")
        )

    def load_raw_records(self, use_cache: bool = True) -> pd.DataFrame:
        """
        Return the raw person-level table.

        Args:
            use_cache: Read a cached copy if one exists

        Returns:
            DataFrame with the configured PUMS variables
        """
        start = datetime.now()

        if use_cache and self.cache_enabled:
            df = self.cache_connector.read_table(self.raw_table_name)
            if df is not None:
                logger.info(f"Loaded {len(df)} raw rows from cache")
                return df

        df = self.fetch_raw_records()
        duration = (datetime.now() - start).total_seconds()
        logger.info(f"Fetched {len(df)} raw rows in {duration:.2f}s")

        self.cache_table(df, self.raw_table_name)
        return df

    def cache_table(self, df: pd.DataFrame, table_name: str) -> Optional[str]:
        """Store an intermediate table if caching is enabled."""
        if not self.cache_enabled:
            return None
        return self.cache_connector.write_table(df, table_name)
