import pandas as pd
import pytest

from processing.models import HouseholdRecord

PUMAS = ["03201", "03202", "03203"]


@pytest.fixture()
def make_record():
    """Factory for raw household records with PUMS-like defaults."""
    def _make(household_id, weight=10, puma="03201", vehicles=1, tenure=1, income=15000):
        return HouseholdRecord(
            household_id=household_id,
            weight=weight,
            subarea=puma,
            vehicles=vehicles,
            tenure_code=tenure,
            income=income,
        )
    return _make


@pytest.fixture()
def scenario_records(make_record):
    # One homeowner at AMI_20 with 1 car, two renters at AMI_60 with 0 and 2 cars
    return [
        make_record("H1", weight=10, tenure=1, income=15000, vehicles=1),
        make_record("H2", weight=5, tenure=3, income=50000, vehicles=0),
        make_record("H3", weight=5, tenure=3, income=50000, vehicles=2),
    ]


@pytest.fixture()
def mixed_records(make_record):
    """A few dozen households spread over PUMAs, tenures, brackets and vehicle counts."""
    records = []
    incomes = [-5000, 0, 19320, 19321, 38640, 45000, 57960, 60000, 77280, 77281, 150000]
    n = 0
    for puma in PUMAS:
        for i, income in enumerate(incomes):
            for tenure in (1, 2, 3, 4):
                n += 1
                records.append(make_record(
                    f"2019HU{n:05d}",
                    weight=3 + (n * 7) % 41 + 0.25 * (n % 3),
                    puma=puma,
                    vehicles=(n + i) % 8,
                    tenure=tenure,
                    income=income,
                ))
    return records


@pytest.fixture()
def raw_frame():
    """Person-level extract as returned by the Census API (all strings)."""
    return pd.DataFrame(
        [
            ["2019HU0000001", "12", "03201", "1", "1", "15000"],
            ["2019HU0000001", "12", "03201", "1", "1", "15000"],
            ["2019HU0000002", "7", "03202", "0", "3", "50000"],
            ["2019HU0000003", "9", "03202", "2", "4", "50000"],
            ["2019HU0000003", "9", "03202", "2", "4", "50000"],
            ["2019HU0000003", "9", "03202", "2", "4", "50000"],
            ["2019GQ0000004", "0", "03203", "-1", "0", "-60000"],
        ],
        columns=["SERIALNO", "WGTP", "PUMA", "VEH", "TEN", "HINCP"],
    )


@pytest.fixture()
def job_settings(tmp_path):
    return {
        "job_settings": {"name": "test_vehicles_report"},
        "source": {
            "year": 2019,
            "survey": "acs5",
            "state": "42",
            "pumas": PUMAS,
            "variables": ["SERIALNO", "WGTP", "PUMA", "VEH", "TEN", "HINCP"],
            "connection": {"base_url": "https://api.census.gov/data"},
        },
        "cache": {"enabled": False},
        "report": {
            "output_path": str(tmp_path / "report.xlsx"),
            "area_name": "Philadelphia",
        },
        "logging": {"level": "INFO", "log_dir": str(tmp_path / "logs")},
    }
