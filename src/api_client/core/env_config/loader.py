"""
Configuration loader from environment variables and .env files.

Main entry point for loading configuration.
"""

from typing import Any, Optional

from ..config import (
    ApiClientConfig,
    ConnectionPoolConfig,
    DiagnosticsConfig,
    SecurityConfig,
    TimeoutConfig,
)
from ..credentials import (
    AuthScheme,
    CredentialStrategy,
    DefaultIdentity,
    ImpersonatedCredential,
    NetworkCredential,
)
from ..logging.config import LoggingConfig
from .validator import ApiClientSettings


def load_settings(env_file: Optional[str] = None, **overrides: Any) -> ApiClientSettings:
    """
    Read settings: overrides > environment (API_CLIENT_*) > .env file > defaults.

    Raises:
        pydantic.ValidationError: Invalid value in the environment or overrides
    """
    # Init kwargs have the highest priority among pydantic-settings sources
    return ApiClientSettings(_env_file=env_file or '.env', **overrides)


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> ApiClientConfig:
    """
    Load ApiClientConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters (settings field names)
    2. Environment variables (API_CLIENT_*)
    3. .env file
    4. Defaults

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(env_file="qa.env", diagnostics_enabled=True)
    """
    settings = load_settings(env_file, **overrides)

    logging_config = None
    if settings.logging_enabled:
        logging_config = LoggingConfig.create(
            level=settings.log_level,
            format=settings.log_format,
            enable_console=settings.log_enable_console,
            enable_file=settings.log_enable_file,
            file_path=settings.log_file_path,
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count,
            enable_correlation_id=settings.log_enable_correlation_id,
        )

    return ApiClientConfig(
        base_url=settings.base_url or None,
        timeout=TimeoutConfig(total=settings.timeout_total, connect=settings.timeout_connect),
        pool=ConnectionPoolConfig(
            pool_connections=settings.pool_connections,
            pool_maxsize=settings.pool_maxsize,
        ),
        security=SecurityConfig(
            max_response_size=settings.security_max_response_size,
            verify_ssl=settings.security_verify_ssl,
            allow_redirects=settings.security_allow_redirects,
        ),
        diagnostics=DiagnosticsConfig(
            enabled=settings.diagnostics_enabled,
            artifact_dir=settings.diagnostics_dir,
        ),
        logging=logging_config,
    )


def credentials_from_env(settings: Optional[ApiClientSettings] = None) -> CredentialStrategy:
    """
    Build a credential strategy from API_CLIENT_USERNAME / PASSWORD / DOMAIN.

    Returns:
        ImpersonatedCredential when a username is set, otherwise DefaultIdentity

    Example:
        >>> client = ApiClient(config=load_from_env(), credentials=credentials_from_env())
    """
    settings = settings or load_settings()
    if not settings.username:
        return DefaultIdentity()

    return ImpersonatedCredential(
        NetworkCredential(settings.username, settings.password or "", settings.domain),
        scheme=AuthScheme.parse(settings.auth_scheme),
    )
