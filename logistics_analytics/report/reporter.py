"""
Movement Reporter Module
========================

Publishes the report: console text, three charts and two CSV exports.

Each output is attempted independently. A failing chart or export is
logged and recorded on its OutputResult; the remaining outputs still run.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import pandas as pd

from ..aggregate.summaries import MovementAggregates
from ..utils.config import config
from ..utils.logger import PipelineLogger
from .charts import DELAY_RATE_CHART, STATUS_CHART, TOP_ROUTES_CHART, ChartRenderer
from .console import ConsoleReport
from .exports import MOVEMENTS_FILE, ROUTE_SUMMARY_FILE, CsvExporter


@dataclass
class OutputResult:
    """Outcome of one report output."""
    name: str
    path: Optional[Path]
    succeeded: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": str(self.path) if self.path else None,
            "succeeded": self.succeeded,
            "error": self.error,
        }


class MovementReporter:
    """
    Produces every report artifact from cleaned records and aggregates.

    Example:
        reporter = MovementReporter()
        outputs = reporter.publish(result.records, aggregates)
        failed = [o for o in outputs if not o.succeeded]
    """

    def __init__(
        self,
        plots_dir: Optional[str] = None,
        processed_dir: Optional[str] = None,
        console: Optional[ConsoleReport] = None,
        charts: Optional[ChartRenderer] = None,
        exporter: Optional[CsvExporter] = None,
        critical_delay_rate: Optional[float] = None
    ):
        """
        Args:
            plots_dir: Chart directory (uses config if not provided)
            processed_dir: CSV directory (uses config if not provided)
        """
        self.logger = PipelineLogger("report")
        self.plots_dir = Path(plots_dir or config.paths.get("plots", "plots"))
        self.processed_dir = Path(
            processed_dir or config.paths.get("processed_data", "data/processed")
        )
        self.console = console or ConsoleReport()
        self.charts = charts or ChartRenderer()
        self.exporter = exporter or CsvExporter()
        self.critical_delay_rate = float(
            critical_delay_rate if critical_delay_rate is not None
            else config.aggregate.get("critical_delay_rate", 20.0)
        )

    def _attempt(
        self,
        name: str,
        path: Optional[Path],
        action: Callable[[], object]
    ) -> OutputResult:
        """Run one output action, converting any failure into a failed result."""
        try:
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)
            action()
        except Exception as e:  # each output is isolated from the others
            self.logger.error(
                "Output failed",
                output=name,
                path=str(path) if path else "-",
                error=f"{type(e).__name__}: {e}"
            )
            return OutputResult(name=name, path=path, succeeded=False, error=str(e))

        if path is not None:
            self.logger.info("Output written", output=name, path=str(path))
        return OutputResult(name=name, path=path, succeeded=True)

    def print_console(self, aggregates: MovementAggregates) -> OutputResult:
        return self._attempt(
            "console",
            None,
            lambda: self.console.render(aggregates, self.critical_delay_rate)
        )

    def render_charts(self, aggregates: MovementAggregates) -> list[OutputResult]:
        status_path = self.plots_dir / STATUS_CHART
        routes_path = self.plots_dir / TOP_ROUTES_CHART
        delay_path = self.plots_dir / DELAY_RATE_CHART

        results = [
            self._attempt(
                "status_distribution_chart",
                status_path,
                lambda: self.charts.status_distribution(aggregates.by_status, status_path)
            ),
            self._attempt(
                "top_routes_chart",
                routes_path,
                lambda: self.charts.top_routes(aggregates.by_route, routes_path)
            ),
            self._attempt(
                "delay_rate_chart",
                delay_path,
                lambda: self.charts.delay_rate(aggregates.by_route, delay_path)
            ),
        ]
        if all(r.succeeded for r in results):
            self.logger.info("Charts saved", directory=str(self.plots_dir))
        return results

    def export_tables(
        self,
        records: pd.DataFrame,
        aggregates: MovementAggregates
    ) -> list[OutputResult]:
        summary_path = self.processed_dir / ROUTE_SUMMARY_FILE
        movements_path = self.processed_dir / MOVEMENTS_FILE

        results = [
            self._attempt(
                "route_summary_csv",
                summary_path,
                lambda: self.exporter.route_summary(aggregates.by_route, summary_path)
            ),
            self._attempt(
                "movements_csv",
                movements_path,
                lambda: self.exporter.movements(records, movements_path)
            ),
        ]
        if all(r.succeeded for r in results):
            self.logger.info("Processed data exported", directory=str(self.processed_dir))
        return results

    def publish(
        self,
        records: pd.DataFrame,
        aggregates: MovementAggregates
    ) -> list[OutputResult]:
        """
        Produce console text, charts and CSV exports.

        Returns:
            One OutputResult per output, in the order attempted
        """
        results = [self.print_console(aggregates)]
        results += self.render_charts(aggregates)
        results += self.export_tables(records, aggregates)

        failed = [r.name for r in results if not r.succeeded]
        if failed:
            self.logger.warning("Report finished with failed outputs", failed=failed)
        return results
