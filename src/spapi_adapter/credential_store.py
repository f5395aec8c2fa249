"""
CredentialStore module holding the app client credentials and refresh token
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config_loader import ConfigLoader
from .errors import CredentialsError


DEFAULT_CLIENT_ID_ENV = 'SELLING_PARTNER_APP_CLIENT_ID'
DEFAULT_CLIENT_SECRET_ENV = 'SELLING_PARTNER_APP_CLIENT_SECRET'


@dataclass(frozen=True)
class Credentials:
    """App client credentials and the seller's refresh token"""
    app_client_id: str
    app_client_secret: str
    refresh_token: Optional[str] = None


class CredentialStore:
    """Owns the current Credentials value; replaced wholesale, never mutated"""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def replace(self, credentials: Credentials) -> None:
        """Swap in a new Credentials value"""
        self._credentials = credentials

    @classmethod
    def load(cls, explicit: Optional[Dict[str, Any]] = None,
             authentication: Optional[Dict[str, Any]] = None,
             refresh_token: Optional[str] = None) -> 'CredentialStore':
        """
        Build a store from explicit values, falling back to environment variables

        Args:
            explicit: Mapping with SELLING_PARTNER_APP_CLIENT_ID / _SECRET keys
            authentication: The [authentication] config section naming the env vars
            refresh_token: Refresh token of the app user, if any

        Returns:
            CredentialStore holding the loaded credentials

        Raises:
            CredentialsError: If client id or secret cannot be found
        """
        return cls(load_credentials(explicit, authentication, refresh_token))


def load_credentials(explicit: Optional[Dict[str, Any]] = None,
                     authentication: Optional[Dict[str, Any]] = None,
                     refresh_token: Optional[str] = None) -> Credentials:
    explicit = explicit or {}
    authentication = authentication or {}

    client_id = explicit.get('SELLING_PARTNER_APP_CLIENT_ID')
    client_secret = explicit.get('SELLING_PARTNER_APP_CLIENT_SECRET')

    try:
        if not client_id:
            client_id = ConfigLoader.get_environment_value(
                authentication.get('client_id_env', DEFAULT_CLIENT_ID_ENV)
            )
        if not client_secret:
            client_secret = ConfigLoader.get_environment_value(
                authentication.get('client_secret_env', DEFAULT_CLIENT_SECRET_ENV)
            )
    except CredentialsError as e:
        raise CredentialsError(
            'NO_CREDENTIALS_PROVIDED',
            f"App client credentials are missing: {e.message}"
        ) from e

    return Credentials(
        app_client_id=client_id,
        app_client_secret=client_secret,
        refresh_token=refresh_token
    )
