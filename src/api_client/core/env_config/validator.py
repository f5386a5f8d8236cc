"""
Pydantic validators for environment configuration.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import DEFAULT_TIMEOUT, MAX_BUFFER_SIZE
from ..credentials import AuthScheme


class ApiClientSettings(BaseSettings):
    """
    API Client configuration from environment variables.

    Reads from:
    1. Environment variables (API_CLIENT_*)
    2. .env file
    3. Defaults

    Example .env file:
        API_CLIENT_BASE_URL=https://api.example.com
        API_CLIENT_TIMEOUT_TOTAL=30
        API_CLIENT_DIAGNOSTICS_ENABLED=true
        API_CLIENT_DIAGNOSTICS_DIR=/tmp/run-42
        API_CLIENT_USERNAME=qa-bot
        API_CLIENT_PASSWORD=s3cret
        API_CLIENT_AUTH_SCHEME=digest
        API_CLIENT_LOG_LEVEL=DEBUG

    Usage:
        >>> settings = ApiClientSettings()
        >>> settings.base_url
        'https://api.example.com'
    """

    model_config = SettingsConfigDict(
        env_prefix='API_CLIENT_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default="", description="Base URL for all requests")

    # Timeouts
    timeout_total: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    timeout_connect: Optional[float] = Field(default=None, gt=0)

    # Security
    security_verify_ssl: bool = Field(default=True)
    security_max_response_size: int = Field(default=MAX_BUFFER_SIZE, gt=0)
    security_allow_redirects: bool = Field(default=True)

    # Connection pool
    pool_connections: int = Field(default=10, ge=1)
    pool_maxsize: int = Field(default=10, ge=1)

    # Diagnostics
    diagnostics_enabled: bool = Field(default=False)
    diagnostics_dir: Optional[str] = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="text")
    log_enable_console: bool = Field(default=False)
    log_enable_file: bool = Field(default=False)
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = Field(default=True)

    # Credentials (will be masked in logs)
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    domain: Optional[str] = None
    auth_scheme: str = Field(default="basic")

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('auth_scheme')
    @classmethod
    def validate_auth_scheme(cls, v: str) -> str:
        """Only schemes the transport libraries implement."""
        normalized = v.strip().lower()
        if normalized not in {scheme.value for scheme in AuthScheme}:
            raise ValueError(f"Unsupported auth scheme: {v!r}")
        return normalized

    @model_validator(mode='after')
    def validate_dependencies(self) -> 'ApiClientSettings':
        if self.log_enable_file and not self.log_file_path:
            raise ValueError("log_file_path is required when log_enable_file=True")
        if self.username and self.password is None:
            raise ValueError("password is required when username is set")
        return self

    @property
    def logging_enabled(self) -> bool:
        return self.log_enable_console or self.log_enable_file
