"""
CSV exports of the route summary and the cleaned movement records.
"""

from pathlib import Path

import pandas as pd


ROUTE_SUMMARY_FILE = "route_summary.csv"
MOVEMENTS_FILE = "movements_processed.csv"


class CsvExporter:
    """Writes report tables as comma-separated files without the index."""

    def __init__(self, date_format: str = "%Y-%m-%d", encoding: str = "utf-8"):
        self.date_format = date_format
        self.encoding = encoding

    def write(self, df: pd.DataFrame, output_path: Path) -> Path:
        df.to_csv(
            output_path,
            index=False,
            date_format=self.date_format,
            encoding=self.encoding
        )
        return output_path

    def route_summary(self, by_route: pd.DataFrame, output_path: Path) -> Path:
        return self.write(by_route, output_path)

    def movements(self, records: pd.DataFrame, output_path: Path) -> Path:
        return self.write(records, output_path)
