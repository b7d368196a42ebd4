"""
Chart Rendering Module
======================

Matplotlib charts for the movement report, rendered with the
non-interactive Agg backend and written as PNG files.
"""

from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.colors import Normalize
import pandas as pd

from ..utils.config import config


STATUS_CHART = "status_distribution.png"
TOP_ROUTES_CHART = "top_routes.png"
DELAY_RATE_CHART = "delay_rate_by_route.png"


def _gradient(values: pd.Series, cmap_name: str = "viridis") -> list:
    """One color per value, scaled over the value range."""
    if values.empty:
        return []
    cmap = plt.get_cmap(cmap_name)
    norm = Normalize(vmin=float(values.min()), vmax=float(values.max()))
    return [cmap(norm(float(v))) for v in values]


def _no_data(ax) -> None:
    ax.text(0.5, 0.5, "No data in window", ha="center", va="center", transform=ax.transAxes)


class ChartRenderer:
    """
    Renders the three report charts.

    Example:
        renderer = ChartRenderer()
        renderer.status_distribution(aggregates.by_status, Path("plots/status_distribution.png"))
    """

    def __init__(
        self,
        top_routes_by_cost: Optional[int] = None,
        top_routes_by_delay: Optional[int] = None,
        dpi: int = 150
    ):
        self.top_routes_by_cost = int(
            top_routes_by_cost or config.report.get("top_routes_by_cost", 10)
        )
        self.top_routes_by_delay = int(
            top_routes_by_delay or config.report.get("top_routes_by_delay", 8)
        )
        self.dpi = dpi

    def _save(self, fig, output_path: Path) -> Path:
        try:
            fig.tight_layout()
            fig.savefig(output_path, dpi=self.dpi, bbox_inches="tight")
        finally:
            plt.close(fig)
        return output_path

    def cost_ranking(self, by_route: pd.DataFrame) -> pd.DataFrame:
        """Routes with the highest total cost, lowest first for bottom-up bars."""
        return (
            by_route.sort_values("total_cost", ascending=False, kind="mergesort")
            .head(self.top_routes_by_cost)
            .iloc[::-1]
        )

    def delay_ranking(self, by_route: pd.DataFrame) -> pd.DataFrame:
        """Routes with the highest delay rate, ranked on delay rate rather than cost."""
        return (
            by_route.sort_values("delay_rate", ascending=False, kind="mergesort")
            .head(self.top_routes_by_delay)
            .iloc[::-1]
        )

    def status_distribution(self, by_status: pd.DataFrame, output_path: Path) -> Path:
        """Bar chart of movement counts per status, labelled with the count."""
        fig, ax = plt.subplots(figsize=(10, 6))

        if by_status.empty:
            _no_data(ax)
        else:
            labels = [str(s) for s in by_status["status"]]
            colors = [plt.get_cmap("tab10")(i) for i in range(len(labels))]
            bars = ax.bar(labels, by_status["total"].astype(int), color=colors)
            ax.bar_label(bars, padding=3)

        ax.set_title("Movement Status Distribution")
        ax.set_xlabel("Status")
        ax.set_ylabel("Total Movements")
        ax.spines[["top", "right"]].set_visible(False)

        return self._save(fig, output_path)

    def top_routes(self, by_route: pd.DataFrame, output_path: Path) -> Path:
        """Horizontal bars of the routes with the highest total cost."""
        top = self.cost_ranking(by_route)

        fig, ax = plt.subplots(figsize=(12, 8))
        if top.empty:
            _no_data(ax)
        else:
            ax.barh(top["route"].astype(str), top["total_cost"], color=_gradient(top["total_cost"]))

        ax.set_title(f"Top {self.top_routes_by_cost} Routes by Total Cost")
        ax.set_xlabel("Total Cost (R$)")
        ax.set_ylabel("Route")
        ax.spines[["top", "right"]].set_visible(False)

        return self._save(fig, output_path)

    def delay_rate(self, by_route: pd.DataFrame, output_path: Path) -> Path:
        """Horizontal bars of the routes with the highest delay rate."""
        top = self.delay_ranking(by_route)

        fig, ax = plt.subplots(figsize=(12, 8))
        if top.empty:
            _no_data(ax)
        else:
            ax.barh(top["route"].astype(str), top["delay_rate"], color=_gradient(top["delay_rate"], "magma_r"))

        ax.set_title("Delay Rate by Route")
        ax.set_xlabel("Delay Rate (%)")
        ax.set_ylabel("Route")
        ax.spines[["top", "right"]].set_visible(False)

        return self._save(fig, output_path)
