"""
Source schema for the movements table.

Holds the source-to-pipeline column mapping used by the extractor and the
DDL used to seed local databases.
"""

import re

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..errors import ConfigurationError
from ..utils.logger import PipelineLogger


# Source column -> pipeline column, in source order
SOURCE_COLUMNS = {
    "id_movimento": "movement_id",
    "data_movimentacao": "movement_date",
    "rota": "route",
    "origem": "origin",
    "destino": "destination",
    "produto": "product_id",
    "quantidade": "quantity",
    "valor_frete": "freight_value",
    "status": "status",
    "dias_atraso": "delay_days",
}

MOVEMENT_COLUMNS = list(SOURCE_COLUMNS.values())

MOVEMENTS_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    id_movimento VARCHAR(50) PRIMARY KEY,
    data_movimentacao DATE NOT NULL,
    rota VARCHAR(100),
    origem VARCHAR(100),
    destino VARCHAR(100),
    produto VARCHAR(100),
    quantidade DECIMAL(12, 2),
    valor_frete DECIMAL(12, 2),
    status VARCHAR(30),
    dias_atraso INTEGER DEFAULT 0
)
"""

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def check_table_name(table: str) -> str:
    """Return `table` if it is a plain (optionally schema-qualified) identifier."""
    if not isinstance(table, str) or not _IDENTIFIER.match(table):
        raise ConfigurationError(f"Invalid source table name: {table!r}")
    return table


def initialize_source_schema(engine: Engine, table: str = "movimentacoes") -> None:
    """
    Create the movements table if it does not exist.

    Args:
        engine: Target engine
        table: Table name
    """
    logger = PipelineLogger("extract")
    logger.info("Initializing source schema", table=table)

    with engine.begin() as conn:
        conn.execute(text(MOVEMENTS_DDL.format(table=check_table_name(table))))
