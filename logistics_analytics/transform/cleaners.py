"""
Data Cleaners Module
====================

Pandas-based transformations that turn raw movement rows into
fully-populated, typed records.

Handles:
- Date parsing
- Numeric coercion and range checks
- Status mapping onto MovementStatus
- Calendar feature derivation
- Dropping invalid rows, with a reason recorded for each
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from ..errors import ConfigurationError, DataQualityError
from ..extract.schema import MOVEMENT_COLUMNS
from ..utils.config import config
from ..utils.logger import PipelineLogger
from .status import MovementStatus, UnknownStatusPolicy, parse_status


TEXT_COLUMNS = ["movement_id", "route", "origin", "destination", "product_id"]
CALENDAR_COLUMNS = ["month", "week", "weekday"]


@dataclass
class CleaningResult:
    """Outcome of cleaning: the surviving records and one rejection per dropped row."""
    records: pd.DataFrame
    rejections: pd.DataFrame

    @property
    def input_count(self) -> int:
        return len(self.records) + len(self.rejections)

    @property
    def rejected_count(self) -> int:
        return len(self.rejections)

    def reason_counts(self) -> dict[str, int]:
        """Number of rejected rows per reason."""
        if self.rejections.empty:
            return {}
        return {
            str(reason): int(count)
            for reason, count in self.rejections["reason"].value_counts(sort=False).items()
        }


class DataCleaner:
    """
    Row-rejecting cleaning steps.

    Each step marks the rows it invalidates with a reason; a row keeps the
    reason of the first step that rejected it. Nothing is dropped until
    `split` is called.
    """

    def __init__(self):
        self.logger = PipelineLogger("transform")
        self._reasons: Optional[pd.Series] = None

    def begin(self, df: pd.DataFrame) -> pd.DataFrame:
        """Start a cleaning pass over a copy of `df` with a fresh index."""
        df = df.copy().reset_index(drop=True)
        self._reasons = pd.Series(None, index=df.index, dtype="object")
        return df

    def reject(self, mask: pd.Series, reason: str) -> int:
        """
        Mark rows matched by `mask` as invalid.

        Returns:
            Number of rows newly rejected by this call
        """
        newly = mask.fillna(False).astype(bool) & self._reasons.isna()
        count = int(newly.sum())
        if count:
            self._reasons.loc[newly] = reason
            self.logger.debug("Rows rejected", reason=reason, rows=count)
        return count

    def normalize_text(self, df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
        """Strip whitespace; empty strings become missing values."""
        for col in columns:
            values = df[col]
            # Integer ids read next to NULLs arrive as floats
            if pd.api.types.is_float_dtype(values) and (values.dropna() % 1 == 0).all():
                values = values.astype("Int64")
            stripped = values.astype(str).str.strip().where(values.notna())
            df[col] = stripped.mask(stripped.eq(""))
        return df

    def standardize_dates(self, df: pd.DataFrame, column: str) -> pd.DataFrame:
        """Parse `column` to midnight timestamps; unparseable values reject the row."""
        raw = df[column]
        # ISO8601 lets date-only and date-time strings share a column
        parsed = pd.to_datetime(raw, errors="coerce", format="ISO8601", utc=True)
        parsed = parsed.dt.tz_localize(None)

        self.reject(parsed.isna() & raw.notna(), f"unparseable {column}")
        df[column] = parsed.dt.normalize()
        return df

    def coerce_numeric(
        self,
        df: pd.DataFrame,
        column: str,
        integer: bool = False
    ) -> pd.DataFrame:
        """
        Convert `column` to numbers.

        Rejects non-numeric, non-finite and negative values, and fractional
        values when `integer` is set.
        """
        raw = df[column]
        values = pd.to_numeric(raw, errors="coerce").astype("float64")

        self.reject(values.isna() & raw.notna(), f"non-numeric {column}")
        self.reject(values.notna() & ~np.isfinite(values), f"non-finite {column}")
        self.reject(values < 0, f"negative {column}")
        if integer:
            self.reject(values.notna() & (values % 1 != 0), f"fractional {column}")

        df[column] = values
        return df

    def reject_missing(self, df: pd.DataFrame) -> pd.DataFrame:
        for col in df.columns:
            self.reject(df[col].isna(), f"missing {col}")
        return df

    def split(self, df: pd.DataFrame, id_column: str) -> CleaningResult:
        """Separate valid rows from rejected ones."""
        valid = self._reasons.isna()

        rejections = pd.DataFrame({
            "row": df.index[~valid],
            "movement_id": df.loc[~valid, id_column].to_numpy(),
            "reason": self._reasons[~valid].to_numpy(),
        })
        records = df.loc[valid].reset_index(drop=True)
        self._reasons = None

        return CleaningResult(records=records, rejections=rejections)


class MovementCleaner(DataCleaner):
    """
    Cleaner for logistics movement rows.

    Example:
        result = MovementCleaner().clean(raw_df)
        result.records        # cleaned movements
        result.rejections     # row, movement_id, reason
    """

    def __init__(self, unknown_status: Optional[str] = None):
        """
        Args:
            unknown_status: 'reject' or 'other' (uses config if not provided)
        """
        super().__init__()
        policy = unknown_status or config.transform.get("unknown_status", "reject")
        try:
            self.status_policy = UnknownStatusPolicy(policy)
        except ValueError:
            raise ConfigurationError(f"Unknown status policy: {policy!r}") from None

    def map_status(self, df: pd.DataFrame) -> pd.DataFrame:
        """Map status labels onto MovementStatus."""
        def to_value(label) -> Optional[str]:
            status = parse_status(label, self.status_policy)
            return None if status is None else status.value

        raw = df["status"]
        values = raw.map(to_value)

        self.reject(values.isna() & raw.notna(), "unknown status")
        df["status"] = values.astype(pd.CategoricalDtype(MovementStatus.categories()))
        return df

    def derive_calendar(self, df: pd.DataFrame) -> pd.DataFrame:
        """Add month, ISO week and weekday name from the movement date."""
        dates = df["movement_date"]
        df["month"] = dates.dt.month
        df["week"] = dates.dt.isocalendar().week
        df["weekday"] = dates.dt.day_name()
        return df

    def clean(self, df: pd.DataFrame) -> CleaningResult:
        """
        Full cleaning pipeline for movement rows.

        Steps:
        1. Parse movement date
        2. Coerce freight value, quantity and delay days
        3. Map status onto MovementStatus
        4. Derive month, ISO week and weekday
        5. Drop rows with any remaining missing value

        Args:
            df: Raw movements DataFrame

        Returns:
            CleaningResult with records and rejections
        """
        missing = [col for col in MOVEMENT_COLUMNS if col not in df.columns]
        if missing:
            raise DataQualityError(f"Movement data is missing columns: {missing}")

        self.logger.info("Starting movements cleaning pipeline", input_rows=len(df))

        df = self.begin(df[MOVEMENT_COLUMNS])
        df = self.normalize_text(df, TEXT_COLUMNS + ["status"])

        df = self.standardize_dates(df, "movement_date")

        df = self.coerce_numeric(df, "freight_value")
        df = self.coerce_numeric(df, "quantity")
        df = self.coerce_numeric(df, "delay_days", integer=True)

        df = self.map_status(df)
        df = self.derive_calendar(df)
        df = self.reject_missing(df)

        result = self.split(df, id_column="movement_id")
        result.records = result.records.astype({
            "delay_days": "int64",
            "month": "int64",
            "week": "int64",
        })

        if result.rejected_count:
            self.logger.info(
                "Invalid rows dropped",
                rejected=result.rejected_count,
                reasons=result.reason_counts()
            )

        self.logger.info(
            "Movements cleaning complete",
            input_rows=result.input_count,
            final_rows=len(result.records)
        )

        return result
