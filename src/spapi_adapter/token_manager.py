"""
TokenManager module owning the default and grantless access tokens
"""

import json
import logging
import threading
from typing import Any, Dict, Optional

from .credential_store import CredentialStore
from .errors import AuthorizationError
from .http_client import HTTPClient, TransportRequest


TOKEN_URL = 'https://api.amazon.com/auth/o2/token'

VALID_SCOPES = (
    'sellingpartnerapi::notifications',
    'sellingpartnerapi::client_credential:rotation'
)


class TokenManager:
    """
    Holds the default access token and a scope -> grantless token mapping

    Tokens carry no expiry here: an expired token is only detected when a call
    comes back with 403 "access token expired". Refreshes are single-flight per
    scope, so concurrent callers that saw the same stale token share one
    exchange.
    """

    def __init__(self, http_client: HTTPClient, credential_store: CredentialStore,
                 access_token: Optional[str] = None, auto_request_tokens: bool = True,
                 only_grantless_operations: bool = False):
        self.http_client = http_client
        self.credential_store = credential_store
        self.auto_request_tokens = auto_request_tokens
        self.only_grantless_operations = only_grantless_operations
        self._access_token = access_token
        self._grantless_tokens: Dict[str, str] = {}
        self._locks: Dict[Optional[str], threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self.logger = logging.getLogger(__name__)

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token

    def set_access_token(self, access_token: Optional[str]) -> None:
        self._access_token = access_token

    def get_token(self, scope: Optional[str] = None) -> Optional[str]:
        if scope:
            return self._grantless_tokens.get(scope)
        return self._access_token

    def token_exists(self, scope: Optional[str] = None) -> bool:
        return bool(self.get_token(scope))

    def ensure_token(self, scope: Optional[str] = None,
                     timeouts: Optional[Dict[str, int]] = None) -> None:
        """
        Make sure a token exists for the scope, requesting one if allowed

        Raises:
            AuthorizationError: If no token is present afterwards
        """
        if self.auto_request_tokens and not self.token_exists(scope):
            with self._lock_for(scope):
                # Another caller may have fetched it while we waited
                if not self.token_exists(scope):
                    self._request_token(scope, timeouts)

        if not self.token_exists(scope):
            raise AuthorizationError(
                'NO_ACCESS_TOKEN_PRESENT',
                'Did you turn off "auto_request_tokens" and forgot to refresh the access token '
                'or the scope for a grantless token?'
            )

    def refresh(self, scope: Optional[str] = None, timeouts: Optional[Dict[str, int]] = None,
                stale_token: Optional[str] = None) -> None:
        """
        Request a new access token, or a grantless token when a scope is given

        Args:
            scope: Grantless scope, None for the default token
            timeouts: Timeouts of the call chain that triggered the refresh
            stale_token: Token the caller saw expire; skips the exchange if it was already replaced
        """
        with self._lock_for(scope):
            current = self.get_token(scope)
            if stale_token is not None and current and current != stale_token:
                self.logger.debug(f"Token for scope {scope or 'default'} already refreshed by another caller")
                return
            self._request_token(scope, timeouts)

    def exchange(self, auth_code: Optional[str]) -> Dict[str, Any]:
        """
        Exchange an authorization code for a refresh token

        Args:
            auth_code: The spapi_oauth_code received from the consent flow

        Returns:
            Parsed token response (refresh_token, access_token, ...)
        """
        if not auth_code:
            raise AuthorizationError(
                'NO_AUTH_CODE_PROVIDED',
                'Please provide an authorization code (spapi_oauth_code) to exchange it for a "refresh_token".'
            )
        credentials = self.credential_store.credentials
        body = {
            'grant_type': 'authorization_code',
            'code': auth_code,
            'client_id': credentials.app_client_id,
            'client_secret': credentials.app_client_secret
        }
        json_res = self._post_token_request(body, None, 'EXCHANGE_AUTH_CODE_PARSE_ERROR')
        if json_res.get('error'):
            raise AuthorizationError(json_res['error'], json_res.get('error_description'))
        return json_res

    def build_refresh_body(self, scope: Optional[str] = None) -> Dict[str, str]:
        """
        Build the token request body for the default or a grantless token

        Raises:
            AuthorizationError: For an unknown scope, or no scope in grantless-only mode
        """
        credentials = self.credential_store.credentials
        body = {
            'client_id': credentials.app_client_id,
            'client_secret': credentials.app_client_secret
        }
        if scope:
            if scope not in VALID_SCOPES:
                raise AuthorizationError(
                    'INVALID_SCOPE_ERROR',
                    f"Scope for requesting token for grantless operations is invalid. "
                    f"Please provide one of: {','.join(VALID_SCOPES)}"
                )
            body['grant_type'] = 'client_credentials'
            body['scope'] = scope
        elif not self.only_grantless_operations:
            body['grant_type'] = 'refresh_token'
            body['refresh_token'] = credentials.refresh_token
        else:
            raise AuthorizationError(
                'NO_SCOPE_PROVIDED',
                f"Grantless tokens require a scope. Please provide one of: {','.join(VALID_SCOPES)}"
            )
        return body

    def _request_token(self, scope: Optional[str], timeouts: Optional[Dict[str, int]]) -> None:
        body = self.build_refresh_body(scope)
        self.logger.debug(f"Requesting access token for scope {scope or 'default'}")

        json_res = self._post_token_request(body, timeouts, 'REFRESH_ACCESS_TOKEN_PARSE_ERROR')

        if json_res.get('access_token'):
            if scope:
                self._grantless_tokens[scope] = json_res['access_token']
            else:
                self._access_token = json_res['access_token']
        elif json_res.get('error'):
            raise AuthorizationError(json_res['error'], json_res.get('error_description'))
        else:
            raise AuthorizationError('UNKNOWN_REFRESH_ACCESS_TOKEN_ERROR', json.dumps(json_res))

    def _post_token_request(self, body: Dict[str, str], timeouts: Optional[Dict[str, int]],
                            parse_error_code: str) -> Dict[str, Any]:
        res = self.http_client.execute(TransportRequest(
            url=TOKEN_URL,
            method='POST',
            headers={'Content-Type': 'application/json'},
            body=json.dumps(body).encode('utf-8'),
            timeouts=timeouts or {}
        ))
        try:
            json_res = json.loads(res.body)
        except ValueError:
            raise AuthorizationError(parse_error_code, res.body)
        if not isinstance(json_res, dict):
            raise AuthorizationError(parse_error_code, res.body)
        return json_res

    def _lock_for(self, scope: Optional[str]) -> threading.Lock:
        with self._locks_guard:
            if scope not in self._locks:
                self._locks[scope] = threading.Lock()
            return self._locks[scope]
