import json
from unittest import mock

from openpyxl import load_workbook

from ingestion.engine import IngestionEngine
from jobs import run_report_job as job
from observability import StructuredLogger


def _engine(settings, frame):
    source = mock.Mock()
    source.get_pums.return_value = frame
    return IngestionEngine(settings=settings, source_connector=source)


def _events(name):
    return StructuredLogger(name, enable_console=False)


def test_successful_run_writes_workbook(job_settings, raw_frame):
    engine = _engine(job_settings, raw_frame)

    summary = job.run_report_job(job_settings, engine=engine, events=_events("test_job_success"))

    assert summary["status"] == "success"
    assert summary["error"] is None
    assert summary["raw_rows"] == 7
    assert summary["households"] == 3
    assert summary["tables"] == {
        "Renter households by PUMA": 1,
        "Renter households (total)": 1,
        "Homeowner households by PUMA": 1,
        "Homeowner households (total)": 1,
    }
    assert summary["output_path"] == job_settings["report"]["output_path"]

    wb = load_workbook(summary["output_path"])
    assert wb.sheetnames[0] == "Documentation"
    engine.source_connector.disconnect.assert_called_once()


def test_output_override(job_settings, raw_frame, tmp_path):
    target = tmp_path / "elsewhere" / "cars.xlsx"
    summary = job.run_report_job(
        job_settings,
        output_path=str(target),
        engine=_engine(job_settings, raw_frame),
        events=_events("test_job_override"),
    )
    assert summary["status"] == "success"
    assert target.exists()


def test_invalid_record_fails_run_without_output(job_settings, raw_frame, tmp_path):
    raw_frame.loc[raw_frame["SERIALNO"] == "2019HU0000002", "TEN"] = "9"
    engine = _engine(job_settings, raw_frame)

    summary = job.run_report_job(job_settings, engine=engine, events=_events("test_job_failure"))

    assert summary["status"] == "failed"
    assert "2019HU0000002" in summary["error"]
    assert summary["output_path"] is None
    assert not (tmp_path / "report.xlsx").exists()
    engine.source_connector.disconnect.assert_called_once()


def test_source_failure_is_reported(job_settings):
    source = mock.Mock()
    source.get_pums.side_effect = ConnectionError("census api unreachable")
    engine = IngestionEngine(settings=job_settings, source_connector=source)

    summary = job.run_report_job(job_settings, engine=engine, events=_events("test_job_source"))

    assert summary["status"] == "failed"
    assert "unreachable" in summary["error"]


def test_main_saves_results(job_settings, raw_frame, tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps(job_settings))
    monkeypatch.setattr(job, "IngestionEngine", lambda settings: _engine(settings, raw_frame))

    assert job.main(["--settings", str(settings_path), "--no-cache"]) == 0

    log_dir = tmp_path / "logs"
    (results_file,) = log_dir.glob("report_results_*.json")
    summary = json.loads(results_file.read_text())
    assert summary["status"] == "success"
    assert summary["households"] == 3

    (events_file,) = log_dir.glob("report_events_*.jsonl")
    events = [json.loads(line) for line in events_file.read_text().splitlines()]
    assert events[0]["event"] == "pipeline_start"
    assert events[-1]["event"] == "pipeline_end"
    assert (tmp_path / "report.xlsx").exists()


def test_main_exit_code_on_failure(job_settings, raw_frame, tmp_path, monkeypatch):
    raw_frame["WGTP"] = "0"
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps(job_settings))
    monkeypatch.setattr(job, "IngestionEngine", lambda settings: _engine(settings, raw_frame))

    assert job.main(["--settings", str(settings_path)]) == 1
