"""
Log filters for correlation IDs and static extra fields.

The correlation ID lives in a ContextVar, so it is isolated per thread and
per asyncio task: concurrent calls on one shared transport never see each
other's IDs.
"""

import logging
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional


_correlation_id: ContextVar[Optional[str]] = ContextVar("api_client_correlation_id", default=None)


def set_correlation_id(correlation_id: str) -> Token:
    """
    Set correlation ID for the current context.

    Returns:
        Token to pass to reset_correlation_id()
    """
    return _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get correlation ID for the current context (None if not set)."""
    return _correlation_id.get()


def reset_correlation_id(token: Token) -> None:
    """Restore the correlation ID that was active before set_correlation_id()."""
    _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Adds correlation_id of the current call to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id and not hasattr(record, 'correlation_id'):
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields to every record.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"suite": "smoke", "build": "1234"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
