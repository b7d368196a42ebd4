"""
Connection Manager Module
=========================

Owns the lifecycle of the database connection used for a report run.

Supports:
- PostgreSQL (production)
- SQLite (local development and tests)
"""

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..errors import SourceConnectionError
from ..utils.config import DatabaseSettings
from ..utils.logger import PipelineLogger


class ConnectionManager:
    """
    Scoped acquisition and release of the movements database connection.

    The connection is opened once, held for the whole run and released
    exactly once, including when a downstream stage raises.

    Example:
        with ConnectionManager(DatabaseSettings.from_config()) as conn:
            movements = extractor.extract(conn)
    """

    def __init__(self, settings: DatabaseSettings):
        """
        Args:
            settings: Explicit connection parameters
        """
        self.logger = PipelineLogger("connect")
        self.settings = settings
        self.engine: Optional[Engine] = None
        self.connection: Optional[Connection] = None

    @property
    def is_open(self) -> bool:
        return self.connection is not None

    def _create_engine(self) -> Engine:
        """Create SQLAlchemy engine based on settings."""
        if self.settings.db_type == "sqlite":
            db_path = Path(self.settings.sqlite_path)
            # SQLite would silently create an empty file
            if not db_path.exists():
                raise SourceConnectionError(f"SQLite database not found: {db_path}")

        self.logger.info(
            "Creating database engine",
            db_type=self.settings.db_type,
            target=self.settings.describe()
        )
        return create_engine(self.settings.url())

    def open(self) -> Connection:
        """
        Open the connection and verify the source answers.

        Returns:
            Live SQLAlchemy connection

        Raises:
            SourceConnectionError: Target unreachable or credentials rejected
        """
        if self.connection is not None:
            return self.connection

        engine = self._create_engine()
        connection = None
        try:
            connection = engine.connect()
            connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            if connection is not None:
                connection.close()
            engine.dispose()
            self.logger.error(
                "Connection failed",
                target=self.settings.describe(),
                error=str(e).splitlines()[0] if str(e) else type(e).__name__
            )
            raise SourceConnectionError(
                f"Could not connect to {self.settings.describe()}: {e}"
            ) from e

        self.engine = engine
        self.connection = connection
        self.logger.info("Connected to database", target=self.settings.describe())
        return connection

    def close(self) -> None:
        """Release the connection and dispose the engine. Safe to call twice."""
        if self.connection is None:
            return

        connection, engine = self.connection, self.engine
        self.connection = None
        self.engine = None
        try:
            connection.close()
        finally:
            if engine is not None:
                engine.dispose()
        self.logger.info("Connection closed", target=self.settings.describe())

    def __enter__(self) -> Connection:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"ConnectionManager({self.settings.describe()}, {state})"
