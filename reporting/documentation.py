"""
Report Documentation
====================

Text of the report's Documentation sheet, filled in from the job settings.
"""

from typing import Dict, List, Optional

import pandas as pd

from processing.models import INCOME_BRACKET_UPPER_BOUNDS

PUMA_REFERENCE_URL = "https://www.census.gov/geographies/reference-maps/2010/geo/2010-pumas.html"


def documentation_lines(report_settings: Optional[Dict] = None, source_settings: Optional[Dict] = None) -> List[str]:
    """
    Build the documentation paragraphs, one spreadsheet row each.

    Args:
        report_settings: 'report' section of the job settings
        source_settings: 'source' section of the job settings
    """
    report_settings = report_settings or {}
    source_settings = source_settings or {}

    area = report_settings.get("area_name", "Philadelphia")
    metro = report_settings.get("metro_name", f"{area} Metro")
    year = source_settings.get("year", 2019)
    survey_years = "5-year" if source_settings.get("survey", "acs5") == "acs5" else "1-year"
    thresholds = ", ".join(
        f"{pct}% AMI = ${bound:,}"
        for pct, bound in zip((20, 40, 60, 80), INCOME_BRACKET_UPPER_BOUNDS)
    )

    lines = [
        f"These tabulations show car ownership of renter and homeowner households in {area}, "
        f"broken out by income level. Renter and homeowner households are broken out into separate "
        f"tables. For each of those tables, you can also find the data broken out by geographical "
        f"areas, called PUMAs (see below for details).",
        "Each of the tables shows the estimated count of households at each income level that own "
        "0 vehicles, 1 vehicle, 2 vehicles, and so forth up to 6+ vehicles. Then it shows the "
        "proportion of households at each income level that owns 0 vehicles, 1 vehicle, &c. "
        "Proportions are rounded to 4 decimal places, with ties rounded to the nearest even digit.",
        "",
        "Data sources:",
        f"The raw data come from the Census Bureau, specifically ACS public use microdata (PUMS), "
        f"{survey_years}, vintage {year}",
        "For descriptions and maps of PUMAs, see:",
        PUMA_REFERENCE_URL,
        "",
        f"Income levels are calculated according to percentages of the {metro} Area Median Income. "
        f"For example, AMI_20 means 'household income at or below 20% of {metro} AMI' and "
        f"AMI_80plus means 'household income greater than 80% of {metro} AMI'.",
    ]

    if report_settings.get("ami_source"):
        lines.append(report_settings["ami_source"])
    if report_settings.get("ami_source_url"):
        lines.append(report_settings["ami_source_url"])
    lines.append(f"For {area}: {thresholds}")

    if report_settings.get("contact"):
        lines.extend(["", report_settings["contact"]])

    return lines


def documentation_frame(report_settings: Optional[Dict] = None, source_settings: Optional[Dict] = None) -> pd.DataFrame:
    """Documentation sheet as a single-column DataFrame."""
    return pd.DataFrame({"information": documentation_lines(report_settings, source_settings)})
