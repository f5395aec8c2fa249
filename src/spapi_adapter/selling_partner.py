"""
SellingPartner client wiring configuration, tokens, orchestration, reports and documents
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .config_loader import ClientConfig, ClientOptions, ConfigLoader, RetrySettings
from .credential_store import CredentialStore, load_credentials
from .document_transfer import DocumentTransfer
from .endpoints import EndpointRegistry, build_default_registry
from .http_client import HTTPClient
from .rate_limit_tracker import RateLimitTracker, RetryPolicy
from .report_poller import ReportPoller
from .request_orchestrator import CallRequest, RequestOrchestrator
from .token_manager import TokenManager
from .version_resolver import VersionResolver


PACKAGE_LOGGER = 'spapi_adapter'


class SellingPartner:
    """
    High-level client for the Selling Partner API

    Tokens are shared by every call made through one instance; use
    access_token to carry a token over to another instance.
    """

    def __init__(self, config: ClientConfig, credentials: Optional[Dict[str, Any]] = None,
                 registry: Optional[EndpointRegistry] = None,
                 http_client: Optional[HTTPClient] = None):
        """
        Initialise the client and all of its components

        Args:
            config: Validated client configuration
            credentials: Optional explicit app client credentials, otherwise read from environment
            registry: Endpoint catalog, defaults to the packaged endpoints
            http_client: Transport, mainly injected by tests
        """
        self.config = config.validate()
        options = config.options

        if options.debug_log:
            logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)
        self.logger = logging.getLogger(__name__)

        self.registry = registry or build_default_registry()
        self.version_resolver = VersionResolver(
            self.registry,
            endpoints_versions=config.endpoints_versions,
            version_fallback=options.version_fallback
        )
        self.credential_store = CredentialStore.load(
            credentials, config.authentication, config.refresh_token
        )
        self.http_client = http_client or HTTPClient(
            region=config.region,
            use_sandbox=options.use_sandbox,
            user_agent=options.user_agent,
            max_retries=config.retries.transport_retries,
            backoff_factor=config.retries.transport_backoff_factor,
            retry_remote_timeout=options.retry_remote_timeout
        )
        self.token_manager = TokenManager(
            self.http_client,
            self.credential_store,
            access_token=config.access_token,
            auto_request_tokens=options.auto_request_tokens,
            only_grantless_operations=options.only_grantless_operations
        )
        self.rate_limit_tracker = RateLimitTracker(RetryPolicy(
            max_attempts=config.retries.max_attempts,
            expiry_backoff=config.retries.expiry_backoff,
            max_delay=config.retries.max_delay
        ))
        self.orchestrator = RequestOrchestrator(
            registry=self.registry,
            version_resolver=self.version_resolver,
            token_manager=self.token_manager,
            http_client=self.http_client,
            rate_limit_tracker=self.rate_limit_tracker,
            timeouts=config.timeouts,
            auto_request_tokens=options.auto_request_tokens,
            auto_request_throttled=options.auto_request_throttled,
            use_sandbox=options.use_sandbox,
            only_grantless_operations=options.only_grantless_operations
        )
        self.document_transfer = DocumentTransfer(self.http_client)
        self.report_poller = ReportPoller(self.orchestrator, self.document_transfer)

    @classmethod
    def from_toml(cls, config_path: Path, credentials: Optional[Dict[str, Any]] = None) -> 'SellingPartner':
        """Create a client from a TOML configuration file"""
        return cls(ConfigLoader.load_toml_config(config_path), credentials=credentials)

    @classmethod
    def create(cls, region: str, refresh_token: Optional[str] = None, access_token: Optional[str] = None,
               endpoints_versions: Optional[Dict[str, str]] = None,
               credentials: Optional[Dict[str, Any]] = None,
               timeouts: Optional[Dict[str, int]] = None,
               retries: Optional[RetrySettings] = None, **options: Any) -> 'SellingPartner':
        """Create a client from keyword arguments; extra keywords are ClientOptions fields"""
        config = ClientConfig(
            region=region,
            refresh_token=refresh_token,
            access_token=access_token,
            endpoints_versions=dict(endpoints_versions or {}),
            options=ClientOptions(**options),
            timeouts=dict(timeouts or {}),
            retries=retries or RetrySettings()
        )
        return cls(config, credentials=credentials)

    @property
    def access_token(self) -> Optional[str]:
        return self.token_manager.access_token

    @property
    def endpoints(self) -> List[str]:
        return self.registry.endpoint_names()

    def call_api(self, operation: Optional[str] = None, endpoint: Optional[str] = None, **kwargs: Any) -> Any:
        """
        Call an operation (or a raw api_path) and return its payload

        Keyword arguments are CallRequest fields: path, query, body, headers,
        api_path, method, scope, restricted_data_token, options.
        """
        return self.orchestrator.call(CallRequest(operation=operation, endpoint=endpoint, **kwargs))

    def refresh_access_token(self, scope: Optional[str] = None) -> None:
        self.token_manager.refresh(scope, self.config.timeouts)

    def exchange(self, auth_code: str) -> Dict[str, Any]:
        return self.token_manager.exchange(auth_code)

    def download(self, details: Any, options: Optional[Dict[str, Any]] = None) -> Any:
        return self.document_transfer.download(details, options)

    def download_stream(self, details: Any, options: Optional[Dict[str, Any]] = None) -> Iterable[bytes]:
        return self.document_transfer.download_stream(details, options)

    def upload(self, details: Any, feed: Dict[str, Any]) -> Dict[str, bool]:
        return self.document_transfer.upload(details, feed)

    def download_report(self, body: Dict[str, Any], **kwargs: Any) -> Any:
        return self.report_poller.download_report(body, **kwargs)

    def download_report_stream(self, body: Dict[str, Any], **kwargs: Any) -> Iterable[bytes]:
        return self.report_poller.download_report_stream(body, **kwargs)

    def update_credentials(self, credentials: Dict[str, Any]) -> None:
        """Replace the app client credentials, keeping the refresh token"""
        current = self.credential_store.credentials
        self.credential_store.replace(load_credentials(
            credentials, self.config.authentication, current.refresh_token
        ))

    def close(self) -> None:
        self.http_client.close_connection()

    def __enter__(self) -> 'SellingPartner':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
