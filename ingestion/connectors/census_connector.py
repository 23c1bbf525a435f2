"""
Census PUMS Source Connector
============================

Connector for extracting ACS PUMS microdata from the Census Data API.
Returns one row per person; household-level variables repeat across the
persons of a household.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd
import requests

from processing.exceptions import ValidationError

logger = logging.getLogger(__name__)

CENSUS_API_BASE = "https://api.census.gov/data"

# Geography column the API appends for a PUMA predicate
PUMA_GEOGRAPHY = "public use microdata area"


class CensusConnector:
    """
    Census Data API connector for PUMS extraction.
    """

    def __init__(self, config: Optional[Dict] = None, session: Optional[requests.Session] = None):
        """
        Initialize Census connector.

        Args:
            config: Connection configuration dict with api_key, base_url, timeout
            session: Optional requests session (shared connection pool)
        """
        self.config = config or {}
        self.base_url = self.config.get("base_url", CENSUS_API_BASE).rstrip("/")
        self.api_key = self.config.get("api_key")
        self.timeout = self.config.get("timeout", 120)
        self.session = session

    def connect(self):
        """Open an HTTP session."""
        if self.session is None:
            self.session = requests.Session()
        logger.info(f"Census API session ready: {self.base_url}")

    def disconnect(self):
        """Close the HTTP session."""
        if self.session is not None:
            self.session.close()
            self.session = None
            logger.info("Census API session closed")

    def build_request(
        self,
        variables: Iterable[str],
        state: str,
        pumas: Iterable[str],
        year: int,
        survey: str = "acs5"
    ) -> Tuple[str, Dict]:
        """
        Build the PUMS endpoint URL and query parameters.

        Returns:
            (url, params)
        """
        url = f"{self.base_url}/{year}/acs/{survey}/pums"
        params = {
            "get": ",".join(variables),
            "for": f"{PUMA_GEOGRAPHY}:{','.join(pumas)}",
            "in": f"state:{state}",
        }
        if self.api_key:
            params["key"] = self.api_key
        return url, params

    def get_pums(
        self,
        variables: List[str],
        state: str,
        pumas: List[str],
        year: int,
        survey: str = "acs5"
    ) -> pd.DataFrame:
        """
        Extract PUMS records for the given PUMAs.

        Args:
            variables: PUMS variables to request (e.g. SERIALNO, WGTP, VEH)
            state: Two-digit state FIPS code
            pumas: Five-digit PUMA codes
            year: Survey vintage (end year)
            survey: 'acs1' or 'acs5'

        Returns:
            DataFrame of string values with one column per requested variable
        """
        if self.session is None:
            self.connect()

        url, params = self.build_request(variables, state, pumas, year, survey)
        logger.info(f"Requesting {survey} {year} PUMS for state {state}, {len(pumas)} PUMAs")

        resp = self.session.get(url, params=params, timeout=self.timeout)
        if not resp.ok:
            logger.error(f"API Error {resp.status_code}: {resp.text[:500]}")
        resp.raise_for_status()

        df = self.parse_response(resp.json(), variables)
        logger.info(f"Extracted {len(df)} person rows")
        return df

    @staticmethod
    def parse_response(payload: List[List], variables: List[str]) -> pd.DataFrame:
        """
        Convert the API's array-of-arrays payload to a DataFrame.

        The first row is the header. Geography columns appended by the API
        are dropped unless they were requested.
        """
        if not payload:
            raise ValidationError("Census API returned an empty payload")

        header, rows = payload[0], payload[1:]
        df = pd.DataFrame(rows, columns=header, dtype=str)

        missing = [var for var in variables if var not in df.columns]
        if missing:
            raise ValidationError(f"Census API response is missing columns: {missing}")

        return df[list(variables)].reset_index(drop=True)
