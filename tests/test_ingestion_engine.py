import copy
from unittest import mock

import pandas as pd

from ingestion.connectors.census_connector import CensusConnector
from ingestion.engine import RAW_TABLE, IngestionEngine


def _source(frame):
    source = mock.Mock()
    source.get_pums.return_value = frame
    return source


def test_fetches_from_source_with_configured_request(job_settings, raw_frame):
    source = _source(raw_frame)
    engine = IngestionEngine(settings=job_settings, source_connector=source)
    engine.connect()

    df = engine.load_raw_records()

    pd.testing.assert_frame_equal(df, raw_frame)
    source.connect.assert_called_once()
    source.get_pums.assert_called_once_with(
        variables=job_settings["source"]["variables"],
        state="42",
        pumas=job_settings["source"]["pumas"],
        year=2019,
        survey="acs5",
    )
    assert engine.cache_table(df, "data_selected") is None


def test_cache_miss_fetches_and_stores(job_settings, raw_frame):
    source = _source(raw_frame)
    cache = mock.Mock()
    cache.read_table.return_value = None
    engine = IngestionEngine(settings=job_settings, source_connector=source, cache_connector=cache)
    engine.connect()

    engine.load_raw_records()

    cache.connect.assert_called_once()
    cache.read_table.assert_called_once_with(engine.raw_table_name)
    source.get_pums.assert_called_once()
    cache.write_table.assert_called_once_with(raw_frame, engine.raw_table_name)


def test_cache_hit_skips_source(job_settings, raw_frame):
    source = _source(raw_frame)
    cache = mock.Mock()
    cache.read_table.return_value = raw_frame
    engine = IngestionEngine(settings=job_settings, source_connector=source, cache_connector=cache)
    engine.connect()

    df = engine.load_raw_records()

    assert df is raw_frame
    source.get_pums.assert_not_called()
    cache.write_table.assert_not_called()


def test_no_cache_flag_bypasses_cache(job_settings, raw_frame):
    source = _source(raw_frame)
    cache = mock.Mock()
    cache.read_table.return_value = raw_frame
    engine = IngestionEngine(settings=job_settings, source_connector=source, cache_connector=cache)
    engine.connect()

    engine.load_raw_records(use_cache=False)

    cache.read_table.assert_not_called()
    source.get_pums.assert_called_once()


def test_default_source_reads_api_key_from_env(job_settings, monkeypatch):
    monkeypatch.setenv("CENSUS_API_KEY", "env-key")
    engine = IngestionEngine(settings=job_settings)
    engine.connect()
    try:
        assert isinstance(engine.source_connector, CensusConnector)
        assert engine.source_connector.api_key == "env-key"
    finally:
        engine.disconnect()


def test_settings_loaded_from_file(tmp_path, job_settings):
    import json

    path = tmp_path / "settings.json"
    path.write_text(json.dumps(job_settings))
    engine = IngestionEngine(settings_path=str(path))
    assert engine.subareas == job_settings["source"]["pumas"]


def test_raw_table_name_tracks_the_extract_request(job_settings):
    name = IngestionEngine(settings=job_settings).raw_table_name
    assert name.startswith(f"{RAW_TABLE}_acs5_2019_42_")

    reordered = copy.deepcopy(job_settings)
    reordered["source"]["pumas"] = list(reversed(reordered["source"]["pumas"]))
    assert IngestionEngine(settings=reordered).raw_table_name == name

    for section, field, value in [
        ("source", "year", 2018),
        ("source", "survey", "acs1"),
        ("source", "state", "34"),
        ("source", "pumas", ["03201"]),
        ("source", "variables", ["SERIALNO", "WGTP", "PUMA", "VEH", "TEN", "HINCP", "NP"]),
    ]:
        changed = copy.deepcopy(job_settings)
        changed[section][field] = value
        assert IngestionEngine(settings=changed).raw_table_name != name, field


def test_cache_from_other_vintage_is_not_reused(job_settings, raw_frame):
    cache = mock.Mock()
    cache.read_table.return_value = None
    engine = IngestionEngine(settings=job_settings, source_connector=_source(raw_frame), cache_connector=cache)
    engine.connect()
    engine.load_raw_records()
    stored_as = cache.write_table.call_args.args[1]

    later = copy.deepcopy(job_settings)
    later["source"]["year"] = 2021
    engine = IngestionEngine(settings=later, source_connector=_source(raw_frame), cache_connector=cache)
    engine.connect()
    engine.load_raw_records()

    assert cache.read_table.call_args.args[0] != stored_as
