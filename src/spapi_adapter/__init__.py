"""
Selling Partner API adapter package
Resolves API versions, manages access tokens, retries throttled calls, polls reports and transfers documents
"""

from .config_loader import ConfigLoader, ClientConfig, ClientOptions, RetrySettings, __version__
from .credential_store import CredentialStore, Credentials
from .document_transfer import DocumentTransfer, DocumentDetails
from .endpoints import EndpointRegistry, Endpoint, RequestDescriptor, build_default_registry
from .errors import (
    SellingPartnerError,
    ConfigurationError,
    CredentialsError,
    ResolutionError,
    AuthorizationError,
    TransientRemoteError,
    RemoteAPIError,
    TransportError,
    DecodeError,
    ReportProcessingError,
    normalize_error_code
)
from .http_client import HTTPClient, TransportRequest, TransportResponse
from .rate_limit_tracker import RateLimitTracker, RetryPolicy
from .report_poller import ReportPoller, ReportJob
from .request_orchestrator import RequestOrchestrator, CallRequest
from .selling_partner import SellingPartner
from .token_manager import TokenManager
from .version_resolver import VersionResolver, ResolvedOperation

__all__ = [
    'ConfigLoader',
    'ClientConfig',
    'ClientOptions',
    'RetrySettings',
    'CredentialStore',
    'Credentials',
    'DocumentTransfer',
    'DocumentDetails',
    'EndpointRegistry',
    'Endpoint',
    'RequestDescriptor',
    'build_default_registry',
    'SellingPartnerError',
    'ConfigurationError',
    'CredentialsError',
    'ResolutionError',
    'AuthorizationError',
    'TransientRemoteError',
    'RemoteAPIError',
    'TransportError',
    'DecodeError',
    'ReportProcessingError',
    'normalize_error_code',
    'HTTPClient',
    'TransportRequest',
    'TransportResponse',
    'RateLimitTracker',
    'RetryPolicy',
    'ReportPoller',
    'ReportJob',
    'RequestOrchestrator',
    'CallRequest',
    'SellingPartner',
    'TokenManager',
    'VersionResolver',
    'ResolvedOperation',
    '__version__'
]
