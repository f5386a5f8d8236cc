"""API Client Core - JSON API client base for automated test suites."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.api_client import ApiClient
from .async_client import AsyncApiClient, AsyncRequestPipeline
from .core.config import (
    ApiClientConfig,
    TimeoutConfig,
    ConnectionPoolConfig,
    SecurityConfig,
    DiagnosticsConfig,
)
from .core.credentials import (
    AuthScheme,
    NetworkCredential,
    DefaultIdentity,
    ImpersonatedCredential,
    CredentialCache,
)
from .core.request import ApiRequest
from .core.response import ApiResponse
from .core.pipeline import RequestPipeline
from .core.transport import provision, provision_async
from .core.diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .core.exceptions import (
    ApiClientException,
    InvalidAddressError,
    ConfigurationError,
    RequestReleasedError,
    TransportClosedError,
    TransportFault,
    TimeoutFault,
    ConnectionFault,
    ProtocolFault,
    ResponseTooLargeError,
    NonSuccessStatusError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    DecodeFailure,
)
from .core.env_config import load_from_env, credentials_from_env

# Set up logging - add NullHandler to prevent "No handler found" warnings
# Users can configure logging themselves using logging.getLogger('api_client')
logging.getLogger('api_client').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("api-client-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Core
    "ApiClient",
    "AsyncApiClient",
    "RequestPipeline",
    "AsyncRequestPipeline",
    "ApiRequest",
    "ApiResponse",
    "provision",
    "provision_async",

    # Config
    "ApiClientConfig",
    "TimeoutConfig",
    "ConnectionPoolConfig",
    "SecurityConfig",
    "DiagnosticsConfig",
    "load_from_env",
    "credentials_from_env",

    # Credentials
    "AuthScheme",
    "NetworkCredential",
    "DefaultIdentity",
    "ImpersonatedCredential",
    "CredentialCache",

    # Diagnostics
    "DiagnosticsSink",
    "LoggingDiagnosticsSink",

    # Exceptions
    "ApiClientException",
    "InvalidAddressError",
    "ConfigurationError",
    "RequestReleasedError",
    "TransportClosedError",
    "TransportFault",
    "TimeoutFault",
    "ConnectionFault",
    "ProtocolFault",
    "ResponseTooLargeError",
    "NonSuccessStatusError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "DecodeFailure",

    # Version
    "__version__",
]
