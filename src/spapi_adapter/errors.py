"""
Error taxonomy for the Selling Partner API adapter
"""

import re
from typing import Any, Dict, Optional


_UPPERCASE_BOUNDARY = re.compile(r'(?=[A-Z])')


def normalize_error_code(code: Optional[str]) -> str:
    """
    Convert a remote CamelCase error code into an UPPER_SNAKE code

    Args:
        code: Error code as reported by the remote API (e.g. 'InvalidInput')

    Returns:
        Normalised code (e.g. 'INVALID_INPUT'), or 'UNKNOWN_ERROR' if empty
    """
    if not code:
        return 'UNKNOWN_ERROR'

    # Already normalised codes contain no lowercase letters
    if code.upper() == code:
        return code

    parts = [part for part in _UPPERCASE_BOUNDARY.split(code) if part]
    return '_'.join(parts).upper()


class SellingPartnerError(Exception):
    """Base error carrying a stable machine-readable code"""

    kind = 'error'

    def __init__(self, code: str, message: Any = None, details: Any = None, **metadata: Any):
        super().__init__(message if isinstance(message, str) else str(message))
        self.code = code
        self.message = message
        self.details = details
        self.metadata: Dict[str, Any] = metadata
        self.type = metadata.pop('type', 'error')

    def __getattr__(self, name: str) -> Any:
        # Expose metadata entries (e.g. 'timeout') as attributes
        metadata = self.__dict__.get('metadata', {})
        if name in metadata:
            return metadata[name]
        raise AttributeError(name)

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class ConfigurationError(SellingPartnerError):
    """Raised when the client configuration is invalid or incomplete"""
    kind = 'configuration'


class CredentialsError(ConfigurationError):
    """Raised when app credentials or their environment variables are missing"""
    kind = 'configuration'


class ResolutionError(SellingPartnerError):
    """Raised when an endpoint, operation or version cannot be resolved"""
    kind = 'resolution'


class AuthorizationError(SellingPartnerError):
    """Raised when no usable access token can be obtained"""
    kind = 'authorization'


class TransientRemoteError(SellingPartnerError):
    """Raised for expired tokens and throttling when automatic recovery is off"""
    kind = 'transient_remote'


class RemoteAPIError(SellingPartnerError):
    """Raised for error envelopes returned by the remote API"""
    kind = 'remote'


class TransportError(SellingPartnerError):
    """Raised when the HTTP transport fails or times out"""
    kind = 'transport'


class DecodeError(SellingPartnerError):
    """Raised when a response body cannot be decoded or parsed"""
    kind = 'decode'


class ReportProcessingError(SellingPartnerError):
    """Raised when a report never reaches the DONE status"""
    kind = 'report_lifecycle'
