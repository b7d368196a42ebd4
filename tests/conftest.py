"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pandas as pd
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(autouse=True)
def reset_config():
    """Reset config singleton between tests."""
    from logistics_analytics.utils.config import Config
    Config._instance = None
    Config._config = {}
    yield


def movement(**overrides) -> dict:
    """One raw movement row with pipeline column names."""
    row = {
        "movement_id": "M001",
        "movement_date": "2024-03-01",
        "route": "SP-RJ",
        "origin": "Sao Paulo",
        "destination": "Rio de Janeiro",
        "product_id": "P-10",
        "quantity": "10",
        "freight_value": "100.0",
        "status": "Entregue",
        "delay_days": "0",
    }
    row.update(overrides)
    return row


def source_movement(**overrides) -> dict:
    """One raw movement row with source (movimentacoes) column names."""
    from logistics_analytics.extract.schema import SOURCE_COLUMNS

    row = movement(**overrides)
    return {source: row[target] for source, target in SOURCE_COLUMNS.items()}


def seed_movements(db_path: Path, rows: list[dict], table: str = "movimentacoes") -> None:
    """Create a SQLite source database holding `rows` (source column names)."""
    from sqlalchemy import create_engine, text
    from logistics_analytics.extract.schema import initialize_source_schema

    engine = create_engine(f"sqlite:///{db_path}")
    initialize_source_schema(engine, table)

    if rows:
        columns = list(rows[0].keys())
        insert = text(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)})"
        )
        with engine.begin() as conn:
            conn.execute(insert, rows)

    engine.dispose()


@pytest.fixture
def raw_frame():
    """Build a raw movements DataFrame from row overrides."""
    def build(*rows: dict) -> pd.DataFrame:
        return pd.DataFrame([movement(**row) for row in rows])
    return build


@pytest.fixture
def clean_frame(raw_frame):
    """Build cleaned movement records from row overrides."""
    from logistics_analytics.transform.cleaners import MovementCleaner

    def build(*rows: dict) -> pd.DataFrame:
        result = MovementCleaner(unknown_status="reject").clean(raw_frame(*rows))
        assert result.rejected_count == 0, result.rejections
        return result.records
    return build


@pytest.fixture
def sqlite_settings(tmp_path):
    """DatabaseSettings for a SQLite file inside tmp_path (not created yet)."""
    from logistics_analytics.utils.config import DatabaseSettings
    return DatabaseSettings(db_type="sqlite", sqlite_path=str(tmp_path / "logistica.db"))
