"""
Movement Report Pipeline
========================

Orchestrates the complete report run:
Connect -> Extract -> Clean -> Validate -> Aggregate -> Report -> Disconnect

Can be run standalone (`logistics-report`) or imported and scheduled.
"""

import time
from datetime import date, datetime
from typing import Optional

from .aggregate.summaries import MovementAggregator
from .errors import PipelineError
from .extract.connection import ConnectionManager
from .extract.movements import MovementExtractor
from .report.reporter import MovementReporter
from .transform.cleaners import MovementCleaner
from .transform.validators import create_movements_validator
from .utils.config import DatabaseSettings
from .utils.logger import PipelineLogger


class MovementReportPipeline:
    """
    Complete report pipeline orchestrator.

    Holds one database connection for the whole run and releases it on
    every exit path.

    Example:
        pipeline = MovementReportPipeline()
        results = pipeline.run()
    """

    def __init__(
        self,
        settings: Optional[DatabaseSettings] = None,
        window_days: Optional[int] = None,
        plots_dir: Optional[str] = None,
        processed_dir: Optional[str] = None,
        db_type: Optional[str] = None
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Connection settings (built from config if not provided)
            window_days: Trailing extraction window in days
            plots_dir: Chart output directory
            processed_dir: CSV output directory
            db_type: Database type override ('sqlite' or 'postgresql')
        """
        self.logger = PipelineLogger("pipeline")

        self.settings = settings or DatabaseSettings.from_config(db_type=db_type)

        self.extractor = MovementExtractor(window_days=window_days)
        self.cleaner = MovementCleaner()
        self.aggregator = MovementAggregator()
        self.reporter = MovementReporter(
            plots_dir=plots_dir,
            processed_dir=processed_dir,
            critical_delay_rate=self.aggregator.critical_delay_rate
        )

    def run(self, as_of: Optional[date] = None) -> dict:
        """
        Execute the report pipeline.

        Args:
            as_of: Last day of the extraction window (defaults to today)

        Returns:
            Dictionary with run results

        Raises:
            PipelineError: On any fatal error; the connection is released first
        """
        start_time = time.time()
        self.logger.info("Starting report pipeline", target=self.settings.describe())

        results = {
            "start_time": datetime.now().isoformat(),
            "rows_extracted": 0,
            "rows_cleaned": 0,
            "rejections": {},
            "validation_report": {},
            "critical_routes": [],
            "avoidable_cost": None,
            "outputs": [],
            "errors": [],
        }

        try:
            with ConnectionManager(self.settings) as connection:
                self.logger.info("=== EXTRACT PHASE ===")
                raw = self.extractor.extract(connection, as_of=as_of)
                results["rows_extracted"] = len(raw)

                self.logger.info("=== TRANSFORM PHASE ===")
                cleaning = self.cleaner.clean(raw)
                results["rows_cleaned"] = len(cleaning.records)
                results["rejections"] = cleaning.reason_counts()

                report = create_movements_validator(as_of).validate(cleaning.records)
                results["validation_report"] = report.to_dict()

                self.logger.info("=== AGGREGATE PHASE ===")
                aggregates = self.aggregator.aggregate(cleaning.records)
                results["critical_routes"] = aggregates.critical_routes["route"].tolist()
                results["avoidable_cost"] = round(aggregates.avoidable_cost, 2)

                self.logger.info("=== REPORT PHASE ===")
                outputs = self.reporter.publish(cleaning.records, aggregates)
                results["outputs"] = [o.to_dict() for o in outputs]

        except PipelineError as e:
            self.logger.error(f"Pipeline failed: {e}")
            results["errors"].append(str(e))
            results["status"] = "failed"
            raise

        failed = [o["name"] for o in results["outputs"] if not o["succeeded"]]
        results["errors"].extend(f"Output failed: {name}" for name in failed)

        duration = time.time() - start_time
        results["duration_seconds"] = round(duration, 2)
        results["status"] = "completed_with_errors" if failed else "completed"
        results["end_time"] = datetime.now().isoformat()

        self.logger.info(
            "Pipeline finished",
            status=results["status"],
            duration=f"{duration:.2f}s",
            rows=results["rows_cleaned"]
        )

        return results


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for the report pipeline."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Logistics movement analytics report"
    )
    parser.add_argument(
        "--db",
        choices=["sqlite", "postgresql"],
        default=None,
        help="Database type (defaults to configuration)"
    )
    parser.add_argument(
        "--window-days",
        type=int,
        default=None,
        help="Trailing extraction window in days (defaults to configuration)"
    )

    args = parser.parse_args(argv)

    try:
        pipeline = MovementReportPipeline(db_type=args.db, window_days=args.window_days)
        print("[INFO] Connecting to database...")
        results = pipeline.run()
    except PipelineError as e:
        print(f"\n[ERROR] {type(e).__name__}: {e}")
        return 1

    print("\n" + "=" * 50)
    print("Movement Report Results")
    print("=" * 50)
    print(f"Status: {results['status']}")
    print(f"Rows extracted: {results['rows_extracted']}")
    print(f"Rows after cleaning: {results['rows_cleaned']}")

    for reason, count in results["rejections"].items():
        print(f"  - dropped ({reason}): {count}")

    for output in results["outputs"]:
        if output["path"]:
            state = "ok" if output["succeeded"] else f"FAILED ({output['error']})"
            print(f"  - {output['path']}: {state}")

    print(f"Duration: {results['duration_seconds']}s")
    print(f"[TIME] Finished at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
