"""
Environment configuration system for API Client.

Load configuration from .env files and environment variables.

Example:
    >>> from api_client.core.env_config import load_from_env, credentials_from_env
    >>>
    >>> config = load_from_env()
    >>> client = ApiClient(config=config, credentials=credentials_from_env())
"""

from .loader import load_from_env, load_settings, credentials_from_env
from .validator import ApiClientSettings

__all__ = [
    "load_from_env",
    "load_settings",
    "credentials_from_env",
    "ApiClientSettings",
]
