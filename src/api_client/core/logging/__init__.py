"""
Structured logging for API Client.

Example:
    >>> from api_client.core.logging import ApiClientLogger, LoggingConfig
    >>> logger = ApiClientLogger(LoggingConfig.create(level="DEBUG", format="json"))
    >>> logger.info("Request started", method="GET", url="https://api.com/users")
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import ApiClientLogger
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    get_correlation_id,
    reset_correlation_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    "ApiClientLogger",
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "get_correlation_id",
    "reset_correlation_id",
    "create_console_handler",
    "create_file_handler",
]
