"""
Movement Extractor Module
=========================

Reads logistics movement records for a trailing date window and
materializes them as a DataFrame. No pagination; the window is small
enough to fetch at once.
"""

from datetime import date, timedelta
from typing import Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ConfigurationError, QueryError
from ..utils.config import config
from ..utils.logger import PipelineLogger
from .schema import SOURCE_COLUMNS, check_table_name


class MovementExtractor:
    """
    Extracts movement records from the source table.

    The query selects a fixed window (default: the last 90 days) ordered by
    movement date, most recent first, and renames source columns to the
    pipeline's column names without reordering them.

    Example:
        extractor = MovementExtractor()
        with ConnectionManager(settings) as conn:
            raw = extractor.extract(conn)
    """

    def __init__(self, table: Optional[str] = None, window_days: Optional[int] = None):
        """
        Args:
            table: Source table (uses config if not provided)
            window_days: Trailing window size in days (uses config if not provided)
        """
        self.logger = PipelineLogger("extract")
        self.table = check_table_name(table or config.source.get("table", "movimentacoes"))

        days = window_days if window_days is not None else config.source.get("window_days", 90)
        try:
            self.window_days = int(days)
        except (TypeError, ValueError):
            raise ConfigurationError(f"window_days must be an integer, got {days!r}") from None
        if self.window_days < 0:
            raise ConfigurationError(f"window_days must not be negative: {self.window_days}")

    def build_query(self) -> str:
        """SQL for the movement window; `:since` is the only parameter."""
        columns = ",\n    ".join(
            f"{source} AS {target}" for source, target in SOURCE_COLUMNS.items()
        )
        return (
            f"SELECT\n    {columns}\n"
            f"FROM {self.table}\n"
            f"WHERE data_movimentacao >= :since\n"
            f"ORDER BY data_movimentacao DESC"
        )

    def window_start(self, as_of: Optional[date] = None) -> date:
        """First date included in the window ending at `as_of` (today by default)."""
        return (as_of or date.today()) - timedelta(days=self.window_days)

    def extract(self, connection: Connection, as_of: Optional[date] = None) -> pd.DataFrame:
        """
        Run the window query and return the raw rows.

        Args:
            connection: Open connection from ConnectionManager
            as_of: End of the window (defaults to today)

        Returns:
            DataFrame with one row per movement, as delivered by the source

        Raises:
            QueryError: Malformed query or connection dropped mid-fetch
        """
        since = self.window_start(as_of)
        self.logger.info(
            "Extracting movements",
            table=self.table,
            since=since.isoformat(),
            window_days=self.window_days
        )

        try:
            df = pd.read_sql(
                text(self.build_query()),
                connection,
                params={"since": since.isoformat()}
            )
        except (SQLAlchemyError, pd.errors.DatabaseError) as e:
            self.logger.error("Extraction query failed", table=self.table, error=str(e))
            raise QueryError(f"Movement query against {self.table} failed: {e}") from e

        self.logger.info("Extraction complete", rows=len(df))
        self.logger.debug("Raw extraction profile", **self.profile_data(df)["null_counts"])
        return df

    @staticmethod
    def profile_data(df: pd.DataFrame) -> dict:
        """
        Generate a data profile for a raw extraction.

        Returns:
            Dictionary with row count, per-column null counts and
            min/max for numeric columns
        """
        profile = {
            "row_count": len(df),
            "null_counts": {col: int(df[col].isnull().sum()) for col in df.columns},
            "ranges": {},
        }

        for col in df.columns:
            if pd.api.types.is_numeric_dtype(df[col]) and not df[col].isnull().all():
                profile["ranges"][col] = (float(df[col].min()), float(df[col].max()))

        return profile
