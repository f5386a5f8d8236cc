"""Core API Client модули."""

from .exceptions import (
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
    classify_status,
    classify_requests_exception,
    classify_httpx_exception,
)
from .config import (
    TimeoutConfig,
    ConnectionPoolConfig,
    SecurityConfig,
    DiagnosticsConfig,
    ApiClientConfig,
)
from .credentials import (
    AuthScheme,
    NetworkCredential,
    DefaultIdentity,
    ImpersonatedCredential,
    CredentialCache,
    CredentialStrategy,
)
from .request import ApiRequest
from .response import ApiResponse
from .decoding import FieldConverters, decode_json
from .diagnostics import DiagnosticsSink, LoggingDiagnosticsSink
from .transport import Transport, AsyncTransport, provision, provision_async
from .pipeline import RequestPipeline
from .api_client import ApiClient

__all__ = [
    # Config
    "TimeoutConfig",
    "ConnectionPoolConfig",
    "SecurityConfig",
    "DiagnosticsConfig",
    "ApiClientConfig",
    # Credentials
    "AuthScheme",
    "NetworkCredential",
    "DefaultIdentity",
    "ImpersonatedCredential",
    "CredentialCache",
    "CredentialStrategy",
    # Transport
    "Transport",
    "AsyncTransport",
    "provision",
    "provision_async",
    # Pipeline
    "ApiRequest",
    "ApiResponse",
    "RequestPipeline",
    "ApiClient",
    "FieldConverters",
    "decode_json",
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
    "classify_status",
    "classify_requests_exception",
    "classify_httpx_exception",
]
