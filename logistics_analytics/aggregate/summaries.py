"""
Movement Aggregation Module
===========================

Grouped summaries over cleaned movement records: distribution by status,
cost and delay profile by route, critical routes and the avoidable cost
of delays.

All functions are pure; the same records always produce identical tables.
"""

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from ..transform.status import MovementStatus
from ..utils.config import config
from ..utils.logger import PipelineLogger


STATUS_SUMMARY_COLUMNS = ["status", "total", "percentage", "total_freight"]
ROUTE_SUMMARY_COLUMNS = [
    "route",
    "total_movements",
    "mean_cost",
    "total_cost",
    "mean_quantity",
    "mean_delay",
    "delay_rate",
]


@dataclass
class MovementAggregates:
    """Everything the reporter needs besides the records themselves."""
    overview: dict
    by_status: pd.DataFrame
    by_route: pd.DataFrame
    critical_routes: pd.DataFrame
    avoidable_cost: float


def describe_movements(records: pd.DataFrame) -> dict:
    """Movement count and mean freight, quantity and delay."""
    if records.empty:
        return {
            "movements": 0,
            "mean_freight": float("nan"),
            "mean_quantity": float("nan"),
            "mean_delay": float("nan"),
        }

    return {
        "movements": len(records),
        "mean_freight": float(records["freight_value"].mean()),
        "mean_quantity": float(records["quantity"].mean()),
        "mean_delay": float(records["delay_days"].mean()),
    }


def summarize_by_status(records: pd.DataFrame) -> pd.DataFrame:
    """
    Count, share of total and freight sum per status.

    Only statuses present in the records appear, in MovementStatus order.
    """
    if records.empty:
        return pd.DataFrame(columns=STATUS_SUMMARY_COLUMNS)

    status = records["status"].astype(pd.CategoricalDtype(MovementStatus.categories()))
    summary = (
        records.assign(status=status)
        .groupby("status", observed=True, sort=True)
        .agg(
            total=("movement_id", "size"),
            total_freight=("freight_value", "sum"),
        )
        .reset_index()
    )
    summary["percentage"] = (summary["total"] / len(records) * 100).round(2)

    return summary[STATUS_SUMMARY_COLUMNS]


def summarize_by_route(records: pd.DataFrame) -> pd.DataFrame:
    """
    Cost, quantity and delay profile per route.

    Sorted by total cost, highest first. The sort is stable: routes with
    equal total cost keep the order in which they first appear in `records`.
    """
    if records.empty:
        return pd.DataFrame(columns=ROUTE_SUMMARY_COLUMNS)

    summary = (
        records.assign(delayed=records["delay_days"] > 0)
        .groupby("route", sort=False)
        .agg(
            total_movements=("movement_id", "size"),
            mean_cost=("freight_value", "mean"),
            total_cost=("freight_value", "sum"),
            mean_quantity=("quantity", "mean"),
            mean_delay=("delay_days", "mean"),
            delayed_movements=("delayed", "sum"),
        )
        .reset_index()
    )
    summary["delay_rate"] = (
        summary["delayed_movements"] / summary["total_movements"] * 100
    ).round(2)

    return (
        summary[ROUTE_SUMMARY_COLUMNS]
        .sort_values("total_cost", ascending=False, kind="mergesort")
        .reset_index(drop=True)
    )


def select_critical_routes(route_summary: pd.DataFrame, threshold: float = 20.0) -> pd.DataFrame:
    """Routes whose delay rate exceeds `threshold`, worst first (stable)."""
    critical = route_summary[route_summary["delay_rate"] > threshold]
    return critical.sort_values("delay_rate", ascending=False, kind="mergesort").reset_index(drop=True)


def estimate_avoidable_cost(records: pd.DataFrame, days_per_period: float = 30) -> float:
    """Sum of freight x delay days / `days_per_period` over delayed movements."""
    delayed = records[records["delay_days"] > 0]
    if delayed.empty:
        return 0.0
    return float((delayed["freight_value"] * delayed["delay_days"] / days_per_period).sum())


class MovementAggregator:
    """
    Computes every aggregate view of a cleaned movement set.

    Example:
        aggregates = MovementAggregator().aggregate(result.records)
        aggregates.by_route.head(5)
    """

    def __init__(
        self,
        critical_delay_rate: Optional[float] = None,
        avoidable_cost_days: Optional[float] = None
    ):
        """
        Args:
            critical_delay_rate: Delay rate (%) above which a route is critical
            avoidable_cost_days: Days over which freight is prorated for delays
        """
        self.logger = PipelineLogger("aggregate")
        self.critical_delay_rate = float(
            critical_delay_rate if critical_delay_rate is not None
            else config.aggregate.get("critical_delay_rate", 20.0)
        )
        self.avoidable_cost_days = float(
            avoidable_cost_days if avoidable_cost_days is not None
            else config.aggregate.get("avoidable_cost_days", 30)
        )

    def aggregate(self, records: pd.DataFrame) -> MovementAggregates:
        by_route = summarize_by_route(records)
        aggregates = MovementAggregates(
            overview=describe_movements(records),
            by_status=summarize_by_status(records),
            by_route=by_route,
            critical_routes=select_critical_routes(by_route, self.critical_delay_rate),
            avoidable_cost=estimate_avoidable_cost(records, self.avoidable_cost_days),
        )

        self.logger.info(
            "Aggregation complete",
            movements=len(records),
            statuses=len(aggregates.by_status),
            routes=len(by_route),
            critical_routes=len(aggregates.critical_routes)
        )
        return aggregates
