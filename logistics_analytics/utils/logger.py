"""
Logging Module
==============

Provides structured logging for all pipeline stages.
Supports console and file output with configurable levels.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import config


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Create a configured logger instance.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output

    Returns:
        Configured Logger instance

    Example:
        logger = setup_logger(__name__)
        logger.info("Starting movement extraction")
    """
    log_level = level or config.logging.get("level", "INFO")
    log_format = config.logging.get(
        "format",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_path = log_file or config.logging.get("file")
    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class PipelineLogger:
    """
    Stage-aware logger for report pipeline operations.

    Prefixes every message with the stage tag and appends context
    as key-value pairs.

    Usage:
        logger = PipelineLogger("extract")
        logger.info("Extraction complete", rows=120)
        # [EXTRACT] Extraction complete | rows=120
    """

    def __init__(self, stage: str, name: str = "logistics_analytics"):
        """
        Initialize logger with stage context.

        Args:
            stage: Pipeline stage (connect, extract, transform, aggregate, report)
            name: Base logger name
        """
        self.stage = stage
        self._logger = setup_logger(f"{name}.{stage}")

    def _format_message(self, message: str, **context) -> str:
        """Format message with context as key-value pairs."""
        if context:
            ctx_str = " | ".join(f"{k}={v}" for k, v in context.items())
            return f"[{self.stage.upper()}] {message} | {ctx_str}"
        return f"[{self.stage.upper()}] {message}"

    def debug(self, message: str, **context) -> None:
        """Log debug message with stage context."""
        self._logger.debug(self._format_message(message, **context))

    def info(self, message: str, **context) -> None:
        """Log info message with stage context."""
        self._logger.info(self._format_message(message, **context))

    def warning(self, message: str, **context) -> None:
        """Log warning message with stage context."""
        self._logger.warning(self._format_message(message, **context))

    def error(self, message: str, **context) -> None:
        """Log error message with stage context."""
        self._logger.error(self._format_message(message, **context))

    def critical(self, message: str, **context) -> None:
        """Log critical message with stage context."""
        self._logger.critical(self._format_message(message, **context))
