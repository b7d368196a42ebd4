"""
Console report: descriptive statistics, summary tables and insights.
"""

import math
import sys
from typing import Optional, TextIO

import pandas as pd

from ..aggregate.summaries import MovementAggregates
from ..utils.config import config


RULE = "=" * 30


def _fmt(value: float, digits: int = 2) -> str:
    return "n/a" if value is None or math.isnan(value) else f"{value:,.{digits}f}"


def _table(df: pd.DataFrame) -> str:
    if df.empty:
        return "  (no rows)"
    return df.to_string(index=False, float_format=lambda v: f"{v:,.2f}")


class ConsoleReport:
    """
    Renders the human-readable report blocks.

    Example:
        ConsoleReport().render(aggregates)
    """

    def __init__(self, stream: Optional[TextIO] = None, top_routes: Optional[int] = None):
        """
        Args:
            stream: Output stream (stdout if not provided)
            top_routes: Routes shown in the cost table (uses config if not provided)
        """
        self.stream = stream
        self.top_routes = int(top_routes or config.report.get("console_top_routes", 5))

    def format(self, aggregates: MovementAggregates, critical_threshold: float = 20.0) -> str:
        """Build the full report text."""
        overview = aggregates.overview
        lines = [
            "",
            "[DESCRIPTIVE ANALYSIS]",
            RULE,
            "",
            f"Mean freight value: R$ {_fmt(overview['mean_freight'])}",
            f"Mean quantity moved: {_fmt(overview['mean_quantity'])} units",
            f"Mean delay: {_fmt(overview['mean_delay'])} days",
            "",
            "Distribution by status:",
            _table(aggregates.by_status),
            "",
            f"[TOP {self.top_routes} ROUTES BY TOTAL COST]",
            _table(aggregates.by_route.head(self.top_routes)),
            "",
            "[INSIGHTS AND RECOMMENDATIONS]",
            RULE,
        ]

        if not aggregates.critical_routes.empty:
            lines += [
                "",
                f"[ALERT] Routes with delay rate > {critical_threshold:g}%:",
                _table(aggregates.critical_routes),
                "",
                "RECOMMENDATION: Review logistics processes on these routes.",
            ]

        lines += [
            "",
            "[POTENTIAL SAVINGS]",
            f"Estimated cost of delays: R$ {_fmt(aggregates.avoidable_cost)}",
            "Recommendation: Implement operational improvements",
        ]
        return "\n".join(lines)

    def render(self, aggregates: MovementAggregates, critical_threshold: float = 20.0) -> None:
        stream = self.stream or sys.stdout
        print(self.format(aggregates, critical_threshold), file=stream)
