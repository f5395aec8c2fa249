"""
Test suite for HTTPClient component
Following TDD approach with AAA pattern and descriptive naming
"""

import dataclasses
import itertools
import pytest
from unittest.mock import Mock, patch
import requests
from spapi_adapter.endpoints import RequestDescriptor
from spapi_adapter.errors import TransportError
from spapi_adapter.http_client import HTTPClient, TransportRequest, TransportResponse


def make_raw_response(status_code=200, chunks=(b'{}',), headers=None, encoding='utf-8'):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {'Content-Type': 'application/json'}
    response.encoding = encoding
    response.iter_content.return_value = list(chunks)
    return response


class TestHTTPClient:
    """Test suite for HTTPClient transport functionality"""

    @patch('requests.Session')
    def test_execute_with_successful_response_returns_transport_response(self, mock_session_class):
        """
        Test that a buffered request returns status, lower-cased headers, body and chunks
        """
        # Arrange
        raw = make_raw_response(chunks=[b'{"payload":', b' {}}'], headers={'X-Amzn-RateLimit-Limit': '2'})
        mock_session = Mock()
        mock_session.request.return_value = raw
        mock_session_class.return_value = mock_session

        http_client = HTTPClient()

        # Act
        result = http_client.execute(TransportRequest(url='https://example.com/doc'))

        # Assert
        assert isinstance(result, TransportResponse)
        assert result.status_code == 200
        assert result.headers == {'x-amzn-ratelimit-limit': '2'}
        assert result.body == '{"payload": {}}'
        assert result.chunks == [b'{"payload":', b' {}}']
        assert result.content == b'{"payload": {}}'
        raw.close.assert_called_once()

    @patch('requests.Session')
    def test_execute_converts_millisecond_timeouts_to_requests_tuple(self, mock_session_class):
        """
        Test that response and idle timeouts become connect and read timeouts in seconds
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.return_value = make_raw_response()
        mock_session_class.return_value = mock_session

        http_client = HTTPClient()

        # Act
        http_client.execute(TransportRequest(
            url='https://example.com',
            timeouts={'response': 5000, 'idle': 2000}
        ))

        # Assert
        assert mock_session.request.call_args[1]['timeout'] == (5.0, 2.0)

    @patch('requests.Session')
    def test_api_builds_regional_url_and_token_header(self, mock_session_class):
        """
        Test that API calls target the regional host and carry the access token
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.return_value = make_raw_response()
        mock_session_class.return_value = mock_session

        http_client = HTTPClient(region='na', user_agent='test-agent')
        descriptor = RequestDescriptor(
            method='POST',
            path='/reports/2021-06-30/reports',
            query={'marketplaceIds': 'ATVPDKIKX0DER'},
            body={'reportType': 'GET_MERCHANT_LISTINGS_ALL_DATA'}
        )

        # Act
        http_client.api('Atza|token', descriptor)

        # Assert
        args, kwargs = mock_session.request.call_args
        assert args == ('POST', 'https://sellingpartnerapi-na.amazon.com/reports/2021-06-30/reports')
        assert kwargs['headers']['x-amz-access-token'] == 'Atza|token'
        assert kwargs['headers']['user-agent'] == 'test-agent'
        assert kwargs['params'] == {'marketplaceIds': 'ATVPDKIKX0DER'}
        assert kwargs['data'] == b'{"reportType": "GET_MERCHANT_LISTINGS_ALL_DATA"}'

    def test_base_url_in_sandbox_mode_uses_sandbox_host(self):
        """
        Test that sandbox mode prefixes the regional host
        """
        # Act
        http_client = HTTPClient(region='eu', use_sandbox=True)

        # Assert
        assert http_client.base_url == 'https://sandbox.sellingpartnerapi-eu.amazon.com'

    @patch('requests.Session')
    @patch('time.sleep')
    def test_execute_with_timeout_retries_with_exponential_backoff(self, mock_sleep, mock_session_class):
        """
        Test that remote timeouts are retried with 1s, 2s backoff before succeeding
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.side_effect = [
            requests.exceptions.ReadTimeout('timed out'),
            requests.exceptions.ReadTimeout('timed out'),
            make_raw_response()
        ]
        mock_session_class.return_value = mock_session

        http_client = HTTPClient(max_retries=3, backoff_factor=2)

        # Act
        result = http_client.execute(TransportRequest(url='https://example.com'))

        # Assert
        assert result.status_code == 200
        assert mock_session.request.call_count == 3
        sleep_calls = [call[0][0] for call in mock_sleep.call_args_list]
        assert sleep_calls == [1.0, 2.0]

    @patch('requests.Session')
    @patch('time.sleep')
    def test_execute_with_persistent_timeout_raises_transport_error(self, mock_sleep, mock_session_class):
        """
        Test that exceeding max retries raises TransportError
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.side_effect = requests.exceptions.ConnectTimeout('timed out')
        mock_session_class.return_value = mock_session

        http_client = HTTPClient(max_retries=2)

        # Act & Assert
        with pytest.raises(TransportError) as exc_info:
            http_client.execute(TransportRequest(url='https://example.com', timeouts={'response': 100}))

        assert exc_info.value.code == 'API_RESPONSE_TIMEOUT'
        assert exc_info.value.timeout == 100
        assert mock_session.request.call_count == 3  # Initial + 2 retries

    @patch('requests.Session')
    def test_execute_with_retry_remote_timeout_disabled_raises_immediately(self, mock_session_class):
        """
        Test that timeouts are not retried when retry_remote_timeout is off
        """
        # Arrange
        mock_session = Mock()
        mock_session.request.side_effect = requests.exceptions.ReadTimeout('timed out')
        mock_session_class.return_value = mock_session

        http_client = HTTPClient(retry_remote_timeout=False)

        # Act & Assert
        with pytest.raises(TransportError):
            http_client.execute(TransportRequest(url='https://example.com'))

        assert mock_session.request.call_count == 1

    @patch('requests.Session')
    @patch('time.monotonic')
    def test_execute_with_exceeded_deadline_raises_and_closes_response(self, mock_monotonic, mock_session_class):
        """
        Test that the deadline is enforced while reading chunks
        """
        # Arrange
        raw = make_raw_response(chunks=[b'a', b'b'])
        mock_session = Mock()
        mock_session.request.return_value = raw
        mock_session_class.return_value = mock_session
        # Deadline computed at 0 + 1s, first chunk read at 5s
        mock_monotonic.side_effect = itertools.chain([0.0], itertools.repeat(5.0))

        http_client = HTTPClient()

        # Act & Assert
        with pytest.raises(TransportError) as exc_info:
            http_client.execute(TransportRequest(url='https://example.com', timeouts={'deadline': 1000}))

        assert exc_info.value.code == 'API_DEADLINE_TIMEOUT'
        raw.close.assert_called_once()

    @patch('requests.Session')
    def test_stream_returns_unbuffered_chunks(self, mock_session_class):
        """
        Test that stream yields chunks and closes the response when exhausted
        """
        # Arrange
        raw = make_raw_response(chunks=[b'part1', b'', b'part2'])
        mock_session = Mock()
        mock_session.request.return_value = raw
        mock_session_class.return_value = mock_session

        http_client = HTTPClient()

        # Act
        streamed = http_client.stream('https://example.com/doc')
        chunks = list(streamed)

        # Assert
        assert streamed.status_code == 200
        assert chunks == [b'part1', b'part2']
        assert mock_session.request.call_args[1]['stream'] is True
        raw.close.assert_called()

    def test_close_connection_with_active_session_closes_successfully(self):
        """
        Test that closing connection properly cleans up session
        """
        # Arrange
        http_client = HTTPClient()
        mock_session = Mock()
        http_client.session = mock_session

        # Act
        http_client.close_connection()

        # Assert
        mock_session.close.assert_called_once()
        assert http_client.session is None

    def test_close_connection_with_no_session_handles_gracefully(self):
        """
        Test that closing connection when no session exists doesn't raise error
        """
        # Arrange
        http_client = HTTPClient()

        # Act & Assert - should not raise any exceptions
        http_client.close_connection()


class TestTransportResponse:
    """Test suite for buffered response access"""

    @patch('requests.Session')
    def test_execute_keeps_bytes_and_decodes_body_with_response_encoding(self, mock_session_class):
        """
        Test that the body is decoded from the buffered chunks using the response encoding
        """
        # Arrange
        raw = make_raw_response(chunks=['Größe'.encode('iso-8859-1')], encoding='ISO-8859-1')
        mock_session = Mock()
        mock_session.request.return_value = raw
        mock_session_class.return_value = mock_session

        # Act
        result = HTTPClient().execute(TransportRequest(url='https://example.com/doc'))

        # Assert
        assert result.encoding == 'ISO-8859-1'
        assert result.content == 'Größe'.encode('iso-8859-1')
        assert result.body == 'Größe'

    def test_body_without_encoding_defaults_to_utf8(self):
        """
        Test that responses without an encoding decode as utf-8 and replace invalid bytes
        """
        # Arrange
        response = TransportResponse(status_code=200, headers={}, chunks=['é'.encode('utf-8'), b'\xff'])

        # Act & Assert
        assert response.body == '\u00e9\ufffd'

    def test_response_fields_are_status_headers_chunks_and_encoding(self):
        """
        Test that the response carries only transport data
        """
        # Act
        names = [f.name for f in dataclasses.fields(TransportResponse)]

        # Assert
        assert names == ['status_code', 'headers', 'chunks', 'encoding']
