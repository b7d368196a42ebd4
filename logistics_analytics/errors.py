"""
Pipeline Errors
===============

Fatal error types raised by the report pipeline. Row-level validation
failures are not exceptions; they are recorded on the cleaning result.
"""


class PipelineError(Exception):
    """Base class for errors that abort a report run."""


class ConfigurationError(PipelineError, ValueError):
    """Invalid settings detected at startup."""


class SourceConnectionError(PipelineError, ConnectionError):
    """The movements database is unreachable or rejected the credentials."""


class QueryError(PipelineError):
    """The extraction query failed or the connection dropped mid-fetch."""


class DataQualityError(PipelineError):
    """A critical data-quality check failed on the cleaned records."""
