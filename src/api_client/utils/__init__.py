"""Utility modules for API Client."""

from .sanitizer import (
    mask_sensitive_data,
    mask_url,
    mask_headers,
    is_sensitive_key,
)
from .uri import (
    try_parse_base_url,
    validate_base_url,
    join_url,
    replace_query_string,
)

__all__ = [
    'mask_sensitive_data',
    'mask_url',
    'mask_headers',
    'is_sensitive_key',
    'try_parse_base_url',
    'validate_base_url',
    'join_url',
    'replace_query_string',
]
