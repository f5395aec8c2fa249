"""
ResponseClassifier module for interpreting Selling Partner API response envelopes
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import DecodeError
from .http_client import TransportResponse


EXPIRED_TOKEN_PATTERN = re.compile(r'access token.*expired', re.IGNORECASE)

# Outcomes of classify()
SUCCESS = 'success'
TOKEN_EXPIRED = 'token_expired'
THROTTLED = 'throttled'
SANDBOX_FAILURE = 'sandbox_failure'
REMOTE_ERROR = 'remote_error'


@dataclass
class Classification:
    """Result of classifying one response"""
    outcome: str
    result: Any = None
    error: Optional[Dict[str, Any]] = None

    @property
    def error_message(self) -> Any:
        if not self.error:
            return None
        return self.error.get('details') or self.error.get('message')


class ResponseClassifier:
    """Parses response bodies and sorts them into success or retryable/fatal errors"""

    def __init__(self, use_sandbox: bool = False):
        self.use_sandbox = use_sandbox

    def parse_body(self, response: TransportResponse) -> Any:
        """
        Parse the JSON body with newlines stripped

        Raises:
            DecodeError: If the body is not valid JSON
        """
        try:
            return json.loads(response.body.replace('\n', ''))
        except ValueError:
            raise DecodeError('JSON_PARSE_ERROR', response.body)

    def classify(self, response: TransportResponse) -> Classification:
        """
        Classify a response into one of the outcomes

        Args:
            response: Transport response of an API call

        Returns:
            Classification with the unwrapped result on success or the first error otherwise
        """
        if response.status_code == 204:
            return Classification(SUCCESS, {'success': True})

        json_res = self.parse_body(response)

        errors = json_res.get('errors') if isinstance(json_res, dict) else None
        if errors:
            error = errors[0] if isinstance(errors[0], dict) else {'message': str(errors[0])}
            return Classification(self._error_outcome(response.status_code, error), error=error)

        return Classification(SUCCESS, self.unwrap(json_res))

    def _error_outcome(self, status_code: int, error: Dict[str, Any]) -> str:
        code = error.get('code')
        text = f"{error.get('details') or ''} {error.get('message') or ''}"

        if status_code == 403 and code == 'Unauthorized' and EXPIRED_TOKEN_PATTERN.search(text):
            return TOKEN_EXPIRED
        if status_code == 429 and code == 'QuotaExceeded':
            return THROTTLED
        if code == 'InternalFailure' and self.use_sandbox:
            return SANDBOX_FAILURE
        return REMOTE_ERROR

    @staticmethod
    def unwrap(json_res: Any) -> Any:
        """
        Extract the result from the response envelope

        Pagination placed next to the payload (e.g. getInventorySummaries) is
        merged into the result; operations that answer without a payload
        wrapper return the whole body. An empty payload is still a payload.
        """
        if not isinstance(json_res, dict):
            return json_res

        payload = json_res.get('payload')
        pagination = json_res.get('pagination')

        if isinstance(pagination, dict) and payload is not None:
            if isinstance(payload, dict):
                return {**pagination, **payload}
            return {**pagination, 'payload': payload}

        return json_res if payload is None else payload
