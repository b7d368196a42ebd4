"""
Configuration Management Module
================================

Loads configuration from YAML files and environment variables.
Provides a centralized Config object for all pipeline components and the
explicit DatabaseSettings structure handed to the connection manager.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from sqlalchemy.engine import URL

from ..errors import ConfigurationError


_ENV_PATTERN = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class Config:
    """
    Centralized configuration management for the report pipeline.

    Loads settings from config.yaml and supports environment variable
    substitution for sensitive values like database credentials.

    Usage:
        config = Config()
        table = config.get("source.table")
        plots_dir = config.paths.get("plots")
    """

    _instance: Optional["Config"] = None
    _config: dict = {}

    def __new__(cls) -> "Config":
        """Singleton pattern to ensure one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_config()
        return cls._instance

    def _load_config(self) -> None:
        """Load configuration from YAML file and environment variables."""
        load_dotenv()

        config_path = self._find_config_file()

        self._config = {}
        if config_path and config_path.exists():
            with open(config_path, "r") as f:
                self._config = yaml.safe_load(f) or {}

        self._substitute_env_vars(self._config)

    def _find_config_file(self) -> Optional[Path]:
        """Find the config.yaml file relative to the project root."""
        possible_paths = [
            Path(os.environ["LOGISTICS_CONFIG"]) if os.getenv("LOGISTICS_CONFIG") else None,
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
            Path.cwd() / "config" / "config.yaml",
            Path.cwd() / "config.yaml",
        ]

        for path in possible_paths:
            if path is not None and path.exists():
                return path

        return None

    def _substitute_env_vars(self, config: dict) -> None:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Unset variables resolve to None so that the declared defaults apply.
        """
        for key, value in config.items():
            if isinstance(value, dict):
                self._substitute_env_vars(value)
            elif isinstance(value, str):
                match = _ENV_PATTERN.match(value)
                if match:
                    config[key] = os.getenv(match.group(1))

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path, e.g., "database.postgresql.host"
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return default if value is None else value

    @property
    def database(self) -> dict:
        """Get database configuration section."""
        return self._config.get("database") or {}

    @database.setter
    def database(self, value: dict):
        self._config["database"] = value

    @property
    def source(self) -> dict:
        """Get source query configuration section."""
        return self._config.get("source") or {}

    @source.setter
    def source(self, value: dict):
        self._config["source"] = value

    @property
    def paths(self) -> dict:
        """Get paths configuration section."""
        return self._config.get("paths") or {}

    @paths.setter
    def paths(self, value: dict):
        self._config["paths"] = value

    @property
    def transform(self) -> dict:
        """Get transform configuration section."""
        return self._config.get("transform") or {}

    @transform.setter
    def transform(self, value: dict):
        self._config["transform"] = value

    @property
    def aggregate(self) -> dict:
        """Get aggregate configuration section."""
        return self._config.get("aggregate") or {}

    @aggregate.setter
    def aggregate(self, value: dict):
        self._config["aggregate"] = value

    @property
    def report(self) -> dict:
        """Get report configuration section."""
        return self._config.get("report") or {}

    @report.setter
    def report(self, value: dict):
        self._config["report"] = value

    @property
    def logging(self) -> dict:
        """Get logging configuration section."""
        return self._config.get("logging") or {}

    @logging.setter
    def logging(self, value: dict):
        self._config["logging"] = value

    def __repr__(self) -> str:
        return f"Config(keys={list(self._config.keys())})"


SUPPORTED_DB_TYPES = ("sqlite", "postgresql")


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Connection parameters for the movements source.

    Defaults are declared here and nowhere else; the YAML file only maps
    environment variables (DB_NAME, DB_USER, DB_PASSWORD, DB_HOST, DB_PORT)
    onto these fields.

    Example:
        settings = DatabaseSettings.from_config()
        with ConnectionManager(settings) as conn:
            ...
    """
    db_type: str = "postgresql"
    host: str = "localhost"
    port: int = 5432
    database: str = "logistica_db"
    username: str = "admin"
    password: str = ""
    sqlite_path: str = "data/logistica.db"
    connect_timeout: int = 10

    def __post_init__(self):
        if self.db_type not in SUPPORTED_DB_TYPES:
            raise ConfigurationError(
                f"Unsupported database type: {self.db_type!r} "
                f"(expected one of {', '.join(SUPPORTED_DB_TYPES)})"
            )

        port = _as_int("port", self.port)
        if not 0 < port < 65536:
            raise ConfigurationError(f"Database port out of range: {port}")
        object.__setattr__(self, "port", port)

        timeout = _as_int("connect_timeout", self.connect_timeout)
        if timeout <= 0:
            raise ConfigurationError(f"connect_timeout must be positive: {timeout}")
        object.__setattr__(self, "connect_timeout", timeout)

        if self.db_type == "postgresql" and not (self.database and self.username):
            raise ConfigurationError("PostgreSQL requires a database name and user")
        if self.db_type == "sqlite" and not self.sqlite_path:
            raise ConfigurationError("SQLite requires a database path")

    @classmethod
    def from_config(
        cls,
        cfg: Optional[Config] = None,
        db_type: Optional[str] = None
    ) -> "DatabaseSettings":
        """
        Build settings from the `database` configuration section.

        Args:
            cfg: Config instance (global config if not provided)
            db_type: Override for the configured database type

        Returns:
            Validated DatabaseSettings
        """
        cfg = cfg or Config()
        section = cfg.database
        pg = section.get("postgresql") or {}
        sqlite = section.get("sqlite") or {}

        values = {
            "db_type": db_type or section.get("type"),
            "host": pg.get("host"),
            "port": pg.get("port"),
            "database": pg.get("database"),
            "username": pg.get("username"),
            "password": pg.get("password"),
            "sqlite_path": sqlite.get("path"),
            "connect_timeout": section.get("connect_timeout"),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})

    def url(self) -> URL:
        """SQLAlchemy URL for these settings."""
        if self.db_type == "sqlite":
            return URL.create("sqlite", database=self.sqlite_path)

        return URL.create(
            "postgresql+psycopg2",
            username=self.username,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"connect_timeout": str(self.connect_timeout)},
        )

    def describe(self) -> str:
        """Connection target without credentials, for logs."""
        if self.db_type == "sqlite":
            return f"sqlite:{self.sqlite_path}"
        return f"postgresql://{self.host}:{self.port}/{self.database}"


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


# Create a global config instance for easy import
config = Config()
