"""
HTTPClient module wrapping requests for API calls, token exchanges and document transfers
"""

import json
import logging
import time
import requests
from typing import Dict, Any, Iterator, List, Optional
from dataclasses import dataclass, field

from .errors import TransportError


REGION_HOSTS = {
    'eu': 'sellingpartnerapi-eu.amazon.com',
    'na': 'sellingpartnerapi-na.amazon.com',
    'fe': 'sellingpartnerapi-fe.amazon.com'
}

CHUNK_SIZE = 64 * 1024


@dataclass
class TransportRequest:
    """Represents a single HTTP request"""
    url: str
    method: str = "GET"
    query: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeouts: Dict[str, int] = field(default_factory=dict)


@dataclass
class TransportResponse:
    """Raw HTTP response: status, lower-cased headers and byte chunks"""
    status_code: int
    headers: Dict[str, str]
    chunks: List[bytes] = field(default_factory=list)
    encoding: Optional[str] = None

    @property
    def content(self) -> bytes:
        return b''.join(self.chunks)

    @property
    def body(self) -> str:
        # Decoded on access only; document downloads read content instead
        return self.content.decode(self.encoding or 'utf-8', errors='replace')


class StreamedResponse:
    """Live response whose body is consumed chunk by chunk"""

    def __init__(self, response: requests.Response, deadline: Optional[float] = None):
        self._response = response
        self._deadline = deadline
        self.status_code = response.status_code
        self.headers = {k.lower(): v for k, v in response.headers.items()}

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_content(chunk_size=CHUNK_SIZE):
                if self._deadline is not None and time.monotonic() > self._deadline:
                    raise TransportError('API_DEADLINE_TIMEOUT', 'Deadline exceeded while reading response')
                if chunk:
                    yield chunk
        finally:
            self.close()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_chunks()

    def close(self) -> None:
        self._response.close()

    def __enter__(self) -> 'StreamedResponse':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class HTTPClient:
    """HTTP client with timeout handling and retries on network failures"""

    def __init__(self, region: str = 'eu', use_sandbox: bool = False,
                 user_agent: Optional[str] = None, max_retries: int = 3,
                 backoff_factor: float = 2.0, retry_remote_timeout: bool = True):
        self.region = region
        self.use_sandbox = use_sandbox
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.retry_remote_timeout = retry_remote_timeout
        self.session: Optional[requests.Session] = None
        self.logger = logging.getLogger(__name__)

    @property
    def base_url(self) -> str:
        host = REGION_HOSTS[self.region]
        if self.use_sandbox:
            host = f"sandbox.{host}"
        return f"https://{host}"

    def api(self, token: str, descriptor: Any) -> TransportResponse:
        """
        Issue a Selling Partner API call described by a RequestDescriptor

        Args:
            token: Bearer value sent as x-amz-access-token
            descriptor: RequestDescriptor with method, path, query, body and headers

        Returns:
            TransportResponse for the call
        """
        headers = {
            'x-amz-access-token': token,
            'content-type': 'application/json; charset=utf-8'
        }
        if self.user_agent:
            headers['user-agent'] = self.user_agent
        headers.update(descriptor.headers or {})

        body = None
        if descriptor.body is not None:
            body = json.dumps(descriptor.body).encode('utf-8')

        return self.execute(TransportRequest(
            url=self.base_url + descriptor.path,
            method=descriptor.method,
            query=descriptor.query or {},
            headers=headers,
            body=body,
            timeouts=descriptor.timeouts or {}
        ))

    def execute(self, request: TransportRequest) -> TransportResponse:
        """
        Make HTTP request and buffer the full response body

        Args:
            request: TransportRequest object containing request details

        Returns:
            TransportResponse object with response data

        Raises:
            TransportError: If the request fails after all retry attempts
        """
        deadline = self._deadline(request.timeouts)
        response = self._send(request, stream=True)

        try:
            chunks = []
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if deadline is not None and time.monotonic() > deadline:
                    raise TransportError(
                        'API_DEADLINE_TIMEOUT',
                        f"Deadline of {request.timeouts.get('deadline')} ms exceeded for {request.url}",
                        timeout=request.timeouts.get('deadline')
                    )
                if chunk:
                    chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            raise TransportError('API_CONNECTION_ERROR', str(e)) from e
        finally:
            response.close()

        return TransportResponse(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            chunks=chunks,
            encoding=response.encoding
        )

    def stream(self, url: str, timeouts: Optional[Dict[str, int]] = None) -> StreamedResponse:
        """
        Open a GET request without buffering the body

        Args:
            url: Pre-signed document URL
            timeouts: Optional response/idle/deadline timeouts in milliseconds

        Returns:
            StreamedResponse to be iterated or closed by the caller
        """
        request = TransportRequest(url=url, timeouts=timeouts or {})
        deadline = self._deadline(request.timeouts)
        return StreamedResponse(self._send(request, stream=True), deadline)

    def _send(self, request: TransportRequest, stream: bool) -> requests.Response:
        """
        Send the request, retrying network-level failures with exponential backoff

        Args:
            request: TransportRequest to send
            stream: Whether the body should be left unread

        Returns:
            The requests.Response object

        Raises:
            TransportError: For timeouts and connection failures after all retries
        """
        # Create session if not exists
        if self.session is None:
            self.session = requests.Session()

        retry_count = 0
        while True:
            try:
                return self.session.request(
                    request.method.upper(),
                    request.url,
                    params=request.query or None,
                    data=request.body,
                    headers=request.headers,
                    timeout=self._timeout(request.timeouts),
                    stream=stream
                )

            except requests.exceptions.Timeout as e:
                retry_count += 1
                if self.retry_remote_timeout and retry_count <= self.max_retries:
                    delay = 1.0 * (self.backoff_factor ** (retry_count - 1))
                    self.logger.debug(f"Request to {request.url} timed out, retrying in {delay} seconds")
                    time.sleep(delay)
                    continue
                raise TransportError(
                    'API_RESPONSE_TIMEOUT',
                    f"Failed after {retry_count - 1} retry attempts. Last error: {e}",
                    timeout=request.timeouts.get('response')
                ) from e

            except requests.exceptions.RequestException as e:
                retry_count += 1
                if self.retry_remote_timeout and retry_count <= self.max_retries:
                    delay = 1.0 * (self.backoff_factor ** (retry_count - 1))
                    time.sleep(delay)
                    continue
                raise TransportError(
                    'API_CONNECTION_ERROR',
                    f"Failed after {retry_count - 1} retry attempts. Last error: {e}"
                ) from e

    @staticmethod
    def _timeout(timeouts: Dict[str, int]) -> Optional[tuple]:
        # response -> connect timeout, idle -> read timeout; both given in ms
        connect = timeouts.get('response')
        read = timeouts.get('idle')
        if not connect and not read:
            return None
        return (connect / 1000 if connect else None, read / 1000 if read else None)

    @staticmethod
    def _deadline(timeouts: Dict[str, int]) -> Optional[float]:
        deadline = timeouts.get('deadline')
        if not deadline:
            return None
        return time.monotonic() + deadline / 1000

    def close_connection(self) -> None:
        """
        Close HTTP session and release resources
        """
        if self.session:
            self.session.close()
            self.session = None
