"""
Movement Consistency Checks
===========================

Cross-field checks on cleaned movement records. The cleaner already
guarantees types, non-null fields and value ranges; these rules catch
records that are individually valid but inconsistent, and are reported
as warnings in the run results. They never drop rows.

Implements:
- Duplicate movement ids
- Delayed status without delay days
- Origin equal to destination
- Movement dates after the end of the extraction window
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

import pandas as pd

from ..utils.logger import PipelineLogger


# Sample of offending ids kept per rule
SAMPLE_SIZE = 5


@dataclass
class RuleResult:
    """Outcome of one consistency rule."""
    rule_name: str
    description: str
    violations: int
    sample_ids: list = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.violations == 0


@dataclass
class ValidationReport:
    """All rule outcomes for one set of records."""
    table_name: str
    row_count: int
    results: list[RuleResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    def failures(self) -> list[RuleResult]:
        return [r for r in self.results if not r.passed]

    def to_dict(self) -> dict:
        return {
            "table_name": self.table_name,
            "row_count": self.row_count,
            "passed": self.passed,
            "failures": [
                {
                    "rule": r.rule_name,
                    "description": r.description,
                    "violations": r.violations,
                    "sample_ids": r.sample_ids,
                }
                for r in self.failures()
            ],
        }


class DataValidator:
    """
    Runs violation rules over a DataFrame.

    A rule returns a boolean Series that is True on offending rows.

    Example:
        validator = DataValidator("movements")
        validator.add_rule(
            "same_endpoints",
            lambda df: df["origin"] == df["destination"],
            "Origin equals destination"
        )
        report = validator.validate(records)
    """

    def __init__(self, table_name: str, id_column: str = "movement_id"):
        self.table_name = table_name
        self.id_column = id_column
        self.logger = PipelineLogger("transform")
        self._rules: list[tuple[str, Callable[[pd.DataFrame], pd.Series], str]] = []

    def add_rule(
        self,
        rule_name: str,
        violation: Callable[[pd.DataFrame], pd.Series],
        description: str
    ) -> "DataValidator":
        """
        Add a rule.

        Args:
            rule_name: Short identifier used in logs and results
            violation: Function returning True for rows that break the rule
            description: Human-readable description

        Returns:
            self for method chaining
        """
        self._rules.append((rule_name, violation, description))
        return self

    def add_unique_check(self, columns: list[str]) -> "DataValidator":
        """Flag every row after the first that repeats `columns`."""
        return self.add_rule(
            f"unique_{'_'.join(columns)}",
            lambda df: df.duplicated(subset=columns),
            f"Duplicate values in {', '.join(columns)}"
        )

    def validate(self, df: pd.DataFrame) -> ValidationReport:
        """
        Run every rule on `df`.

        Returns:
            ValidationReport with one RuleResult per rule
        """
        report = ValidationReport(table_name=self.table_name, row_count=len(df))

        for rule_name, violation, description in self._rules:
            mask = violation(df).fillna(False).astype(bool) if len(df) else pd.Series(dtype=bool)
            offending = df.loc[mask, self.id_column] if len(df) else pd.Series(dtype=object)

            result = RuleResult(
                rule_name=rule_name,
                description=description,
                violations=int(mask.sum()),
                sample_ids=[str(v) for v in offending.head(SAMPLE_SIZE)],
            )
            report.results.append(result)

            if not result.passed:
                self.logger.warning(
                    f"Consistency check failed: {description}",
                    rule=rule_name,
                    violations=result.violations,
                    sample=result.sample_ids
                )

        self.logger.info(
            "Consistency checks complete",
            table=self.table_name,
            rules=len(report.results),
            failed=len(report.failures())
        )
        return report


def create_movements_validator(as_of: Optional[date] = None) -> DataValidator:
    """
    Consistency rules for cleaned movement records.

    Args:
        as_of: End of the extraction window (defaults to today)
    """
    window_end = pd.Timestamp(as_of or date.today())

    return (
        DataValidator("movements")
        .add_unique_check(["movement_id"])
        .add_rule(
            "delayed_without_delay_days",
            lambda df: (df["status"] == "delayed") & (df["delay_days"] == 0),
            "Status is delayed but delay_days is 0"
        )
        .add_rule(
            "same_origin_destination",
            lambda df: df["origin"].str.casefold() == df["destination"].str.casefold(),
            "Origin equals destination"
        )
        .add_rule(
            "future_movement_date",
            lambda df: df["movement_date"] > window_end,
            "Movement date is after the end of the window"
        )
    )
