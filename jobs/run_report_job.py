#!/usr/bin/env python3
"""
Report Job Runner
=================

Main entry point for the vehicle ownership report.
Loads the PUMS extract, runs the tabulation and writes the workbook.

Usage:
    python -m jobs.run_report_job
    python -m jobs.run_report_job --settings jobs/job_settings.json --no-cache
"""

import json
import logging
import sys
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ingestion.engine import IngestionEngine
from observability import StructuredLogger, new_trace_id
from processing.aggregator import aggregate, cells_to_frame
from processing.common_code.utils import generate_batch_id, read_config
from processing.models import GroupingKey
from processing.normalizer import normalize_records, normalized_to_frame, records_from_frame
from processing.pipeline import report_frames, tables_from_normalized
from processing.table_builder import build_table, rows_to_frame
from quality_framework import DimensionMetrics, SchemaContract
from reporting import ReportExporter, documentation_frame

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = str(Path(__file__).parent / "job_settings.json")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_settings: Dict, run_stamp: str) -> Optional[str]:
    """Console + per-run file logging. Returns the log directory."""
    log_dir = log_settings.get("log_dir")
    handlers = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(log_dir, f"report_{run_stamp}.log")))

    logging.basicConfig(
        level=getattr(logging, log_settings.get("level", "INFO")),
        format=LOG_FORMAT,
        handlers=handlers
    )
    return log_dir


def run_report_job(
    settings: Dict,
    output_path: Optional[str] = None,
    use_cache: bool = True,
    engine: Optional[IngestionEngine] = None,
    events: Optional[StructuredLogger] = None
) -> Dict:
    """
    Run the report job end to end.

    Args:
        settings: Job settings dict
        output_path: Workbook path override
        use_cache: Reuse a cached raw extract if available
        engine: Ingestion engine override
        events: Structured event logger override

    Returns:
        Run summary dict ('status' is 'success' or 'failed')
    """
    job_name = settings["job_settings"]["name"]
    run_id = new_trace_id()
    events = events or StructuredLogger(job_name, enable_console=False)
    engine = engine or IngestionEngine(settings=settings)
    output_path = output_path or settings["report"]["output_path"]

    job_start = datetime.now()
    summary = {
        "job_name": job_name,
        "run_id": run_id,
        "start_time": job_start.isoformat(),
        "end_time": None,
        "status": "pending",
        "raw_rows": 0,
        "households": 0,
        "tables": {},
        "output_path": None,
        "error": None
    }

    logger.info("=" * 60)
    logger.info("VEHICLE OWNERSHIP REPORT JOB")
    logger.info("=" * 60)
    logger.info(f"Job Name: {job_name}")
    logger.info(f"Run ID: {run_id}")

    with events.context(run_id=run_id, job=job_name):
        events.log_pipeline_start(job_name, run_id, config=settings["source"])
        try:
            engine.connect()
            df_raw = engine.load_raw_records(use_cache=use_cache)
            summary["raw_rows"] = len(df_raw)

            SchemaContract().validate_schema(df_raw, "data_raw")
            completeness = DimensionMetrics().calculate_completeness(df_raw)
            events.log_data_profile("data_raw", len(df_raw), len(df_raw.columns), completeness["score"])

            normalized = normalize_records(records_from_frame(df_raw), subareas=engine.subareas)
            summary["households"] = len(normalized)
            df_selected = normalized_to_frame(normalized)
            retention = DimensionMetrics().compare_stages(df_raw, df_selected, "data_selected")
            events.log_quality_check("household_retention", "data_selected", True, retention)

            tables = tables_from_normalized(normalized)
            frames = report_frames(tables)
            for sheet_name, df in frames.items():
                summary["tables"][sheet_name] = len(df)

            if engine.cache_enabled:
                cells = aggregate(normalized, GroupingKey.BY_SUBAREA)
                engine.cache_table(df_selected, "data_selected")
                engine.cache_table(cells_to_frame(cells, GroupingKey.BY_SUBAREA), "table_1_original_long")
                engine.cache_table(rows_to_frame(build_table(cells), GroupingKey.BY_SUBAREA), "table_2_full")

            export_start = datetime.now()
            exporter = ReportExporter(output_path)
            written = exporter.export(
                documentation_frame(settings.get("report"), settings["source"]),
                frames
            )
            events.log_task_end(
                "export_report", run_id, "success",
                (datetime.now() - export_start).total_seconds()
            )
            summary["output_path"] = str(written)
            summary["status"] = "success"

        except Exception as e:
            logger.error(f"Report job failed: {e}", exc_info=True)
            events.error("Report job failed", exception=e)
            summary["status"] = "failed"
            summary["error"] = str(e)

        finally:
            engine.disconnect()

        job_end = datetime.now()
        duration = (job_end - job_start).total_seconds()
        summary["end_time"] = job_end.isoformat()
        summary["duration_seconds"] = duration
        events.log_pipeline_end(job_name, run_id, summary["status"], duration, summary["households"])

    logger.info("=" * 60)
    logger.info(f"JOB {'COMPLETE' if summary['status'] == 'success' else 'FAILED'}")
    logger.info(f"Duration: {duration:.2f} seconds")
    logger.info(f"Households: {summary['households']}")
    logger.info(f"Output: {summary['output_path']}")
    logger.info("=" * 60)

    return summary


def save_summary(summary: Dict, log_dir: str) -> str:
    """Write the run summary JSON next to the run log."""
    os.makedirs(log_dir, exist_ok=True)
    stamp = datetime.fromisoformat(summary["start_time"]).strftime('%Y%m%d_%H%M%S')
    results_file = os.path.join(log_dir, f"report_results_{stamp}.json")
    with open(results_file, 'w') as f:
        json.dump(summary, f, indent=2, default=str)
    logger.info(f"Results saved to: {results_file}")
    return results_file


def main(argv=None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Run Vehicle Ownership Report Job")
    parser.add_argument(
        "--settings",
        type=str,
        default=DEFAULT_SETTINGS_PATH,
        help="Path to job settings JSON"
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Workbook path (overrides report.output_path)"
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Fetch from the Census API even if a cached extract exists"
    )
    args = parser.parse_args(argv)

    settings = read_config(args.settings)
    run_stamp = generate_batch_id()
    log_dir = setup_logging(settings.get("logging", {}), run_stamp)

    events_file = os.path.join(log_dir, f"report_events_{run_stamp}.jsonl") if log_dir else None
    events = StructuredLogger(settings["job_settings"]["name"], enable_console=False, log_file=events_file)

    try:
        summary = run_report_job(settings, output_path=args.output, use_cache=not args.no_cache, events=events)
    finally:
        events.close()

    if log_dir:
        save_summary(summary, log_dir)

    return 0 if summary["status"] == "success" else 1


if __name__ == "__main__":
    sys.exit(main())
