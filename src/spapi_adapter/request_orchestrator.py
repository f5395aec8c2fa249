"""
RequestOrchestrator module: the central dispatcher for Selling Partner API calls
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .endpoints import EndpointRegistry, RequestDescriptor
from .errors import (
    AuthorizationError,
    RemoteAPIError,
    ResolutionError,
    TransientRemoteError,
    normalize_error_code
)
from .http_client import HTTPClient
from .rate_limit_tracker import RateLimitTracker, rate_limit_header
from .response_classifier import (
    ResponseClassifier,
    SANDBOX_FAILURE,
    SUCCESS,
    THROTTLED,
    TOKEN_EXPIRED
)
from .token_manager import TokenManager
from .version_resolver import VersionResolver


SANDBOX_GUIDE_URL = (
    'https://github.com/amzn/selling-partner-api-docs/blob/main/guides/developer-guide/'
    'SellingPartnerApiDeveloperGuide.md#how-to-make-a-sandbox-call-to-the-selling-partner-api'
)


@dataclass
class CallRequest:
    """
    One API call as requested by the caller

    Either operation (+ endpoint, or 'endpoint.operation' shorthand) or
    api_path + method determines the request shape. options may hold
    version, restore_rate, timeouts and raw_result.
    """
    operation: Optional[str] = None
    endpoint: Optional[str] = None
    path: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    api_path: Optional[str] = None
    method: Optional[str] = None
    scope: Optional[str] = None
    restricted_data_token: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        if self.api_path:
            return self.api_path
        if self.endpoint and self.operation and '.' not in self.operation:
            return f"{self.endpoint}.{self.operation}"
        return self.operation or ''


class RequestOrchestrator:
    """
    Builds, authorises, dispatches and classifies API calls

    Expired tokens and throttling are recovered by retrying the original
    request in a loop bounded by the tracker's RetryPolicy.
    """

    VALID_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'PATCH')

    def __init__(
        self,
        registry: EndpointRegistry,
        version_resolver: VersionResolver,
        token_manager: TokenManager,
        http_client: HTTPClient,
        rate_limit_tracker: Optional[RateLimitTracker] = None,
        timeouts: Optional[Dict[str, int]] = None,
        auto_request_tokens: bool = True,
        auto_request_throttled: bool = True,
        use_sandbox: bool = False,
        only_grantless_operations: bool = False
    ):
        self.registry = registry
        self.version_resolver = version_resolver
        self.token_manager = token_manager
        self.http_client = http_client
        self.rate_limit_tracker = rate_limit_tracker or RateLimitTracker()
        self.timeouts = dict(timeouts or {})
        self.auto_request_tokens = auto_request_tokens
        self.auto_request_throttled = auto_request_throttled
        self.use_sandbox = use_sandbox
        self.only_grantless_operations = only_grantless_operations
        self.classifier = ResponseClassifier(use_sandbox=use_sandbox)

        self.logger = logging.getLogger(__name__)

    def validate_method(self, method: Optional[str]) -> str:
        """
        Validate the HTTP method given with a raw api_path

        Raises:
            ResolutionError: If the method is missing or not supported
        """
        if not method or method.upper() not in self.VALID_METHODS:
            raise ResolutionError(
                'NO_VALID_METHOD_PROVIDED',
                'Please provide a valid HTTP Method ("GET","POST","PUT","DELETE" or "PATCH") when using "api_path"'
            )
        return method.upper()

    def validate_operation_allowance(self, scope: Optional[str]) -> None:
        """
        Reject non-grantless calls when the client is configured grantless-only

        Raises:
            AuthorizationError: If the call has no scope in grantless-only mode
        """
        if self.only_grantless_operations and not scope:
            raise AuthorizationError(
                'INVALID_OPERATION_ERROR',
                'Operation is not grantless. Set "only_grantless_operations" to false and provide '
                'a "refresh_token" to be able to call the operation.'
            )

    def build_descriptor(self, request: CallRequest) -> RequestDescriptor:
        """
        Build the concrete request, from the registry or from a raw api_path

        Args:
            request: CallRequest supplied by the caller

        Returns:
            RequestDescriptor with restore rate and timeouts applied
        """
        options = request.options or {}

        if request.api_path:
            descriptor = RequestDescriptor(
                method=self.validate_method(request.method),
                path=request.api_path,
                query=dict(request.query or {}),
                body=request.body,
                headers=dict(request.headers or {}),
                scope=request.scope
            )
        else:
            resolved = self.version_resolver.resolve(request.operation, request.endpoint, options.get('version'))
            builder = self.registry.builder(resolved.endpoint, resolved.version, resolved.operation)
            descriptor = builder({
                'path': request.path or {},
                'query': request.query or {},
                'body': request.body,
                'headers': request.headers or {}
            })

            if descriptor.deprecation_date:
                self.logger.warning(
                    f"Operation {resolved.endpoint}.{resolved.operation} ({resolved.version}) "
                    f"is deprecated since {descriptor.deprecation_date}"
                )
            if descriptor.sandbox_only and not self.use_sandbox:
                self.logger.warning(
                    f"Operation {resolved.endpoint}.{resolved.operation} is only available in the sandbox"
                )

        descriptor.restricted_data_token = request.restricted_data_token

        # Caller restore rate wins over the operation default when it is a positive number
        restore_rate = self._numeric(options.get('restore_rate'))
        if restore_rate is not None and math.isfinite(restore_rate) and restore_rate > 0:
            descriptor.restore_rate = restore_rate

        # Call specific timeouts override instance defaults
        descriptor.timeouts = {**self.timeouts, **(options.get('timeouts') or {})}

        return descriptor

    def call(self, request: CallRequest) -> Any:
        """
        Execute one API call, retrying on expired tokens and throttling

        Args:
            request: CallRequest describing the call

        Returns:
            The unwrapped payload, {'success': True} for 204 responses, or the
            raw TransportResponse if options['raw_result'] is set

        Raises:
            SellingPartnerError: Typed failure for every non-recoverable condition
        """
        options = request.options or {}
        descriptor = self.build_descriptor(request)
        scope = descriptor.scope
        policy = self.rate_limit_tracker.policy

        expiry_retries = 0
        throttle_retries = 0

        while True:
            self.validate_operation_allowance(scope)
            self.token_manager.ensure_token(scope, descriptor.timeouts)

            token = self._select_token(descriptor)
            response = self.http_client.api(token, descriptor)

            if options.get('raw_result'):
                return response

            classification = self.classifier.classify(response)

            if classification.outcome == SUCCESS:
                return classification.result

            message = classification.error_message

            if classification.outcome == TOKEN_EXPIRED:
                if not self.auto_request_tokens or not policy.allows(expiry_retries):
                    raise TransientRemoteError('ACCESS_TOKEN_EXPIRED', message, details=classification.error)

                delay = policy.expiry_delay(expiry_retries)
                if delay:
                    time.sleep(delay)
                expiry_retries += 1

                self.logger.debug('Access token expired, refreshing it now')
                # Restricted data tokens are not managed here, so always refresh in that case
                stale = None if (descriptor.restricted_data_token and not scope) else token
                self.token_manager.refresh(scope, descriptor.timeouts, stale_token=stale)
                continue

            if classification.outcome == THROTTLED:
                if not self.auto_request_throttled or not policy.allows(throttle_retries):
                    raise TransientRemoteError(
                        'QUOTA_EXCEEDED',
                        message,
                        details=classification.error,
                        timeout=rate_limit_header(response.headers)
                    )

                delay = self.rate_limit_tracker.restore_delay(response.headers, descriptor.restore_rate)
                throttle_retries += 1
                if delay:
                    self.logger.debug(f"Request throttled, retrying a call of {request.label} in {delay} seconds...")
                    time.sleep(delay)
                continue

            if classification.outcome == SANDBOX_FAILURE:
                raise RemoteAPIError(
                    'INVALID_SANDBOX_PARAMETERS',
                    "You're in SANDBOX mode, make sure sandbox parameters are correct, "
                    f"as in Amazon SP API documentation: {SANDBOX_GUIDE_URL}",
                    details=classification.error
                )

            raise RemoteAPIError(
                normalize_error_code(classification.error.get('code')),
                message,
                details=classification.error,
                status_code=response.status_code
            )

    def _select_token(self, descriptor: RequestDescriptor) -> Optional[str]:
        if descriptor.scope:
            return self.token_manager.get_token(descriptor.scope)
        if descriptor.restricted_data_token:
            return descriptor.restricted_data_token
        return self.token_manager.get_token()

    @staticmethod
    def _numeric(value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
