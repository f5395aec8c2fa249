"""
DocumentTransfer module for uploading and downloading documents via pre-signed URLs
"""

import codecs
import gzip
import json
import logging
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from .content_decoders import (
    charset_from_content_type,
    decode_best_effort,
    decode_bytes,
    decode_structured,
    parse_error_envelope
)
from .errors import DecodeError, RemoteAPIError, ResolutionError
from .http_client import HTTPClient, StreamedResponse, TransportRequest


SUPPORTED_COMPRESSION = 'GZIP'


class GunzipStream:
    """Decompresses a streamed GZIP response chunk by chunk"""

    def __init__(self, response: StreamedResponse):
        self._response = response

    def __iter__(self) -> Iterator[bytes]:
        # wbits 16 + MAX_WBITS accepts the gzip header
        decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
        with self._response:
            for chunk in self._response.iter_chunks():
                data = decompressor.decompress(chunk)
                if data:
                    yield data
            tail = decompressor.flush()
            if tail:
                yield tail

    def close(self) -> None:
        self._response.close()

    def __enter__(self) -> 'GunzipStream':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass
class DocumentDetails:
    """Pre-signed transfer location returned by a report or feed document operation"""
    url: Optional[str]
    compressionAlgorithm: Optional[str] = None

    @classmethod
    def from_value(cls, details: Union['DocumentDetails', Mapping[str, Any], None]) -> 'DocumentDetails':
        if isinstance(details, DocumentDetails):
            return details
        details = details or {}
        return cls(url=details.get('url'), compressionAlgorithm=details.get('compressionAlgorithm'))


class DocumentTransfer:
    """Handles document downloads, streaming downloads and uploads"""

    def __init__(self, http_client: HTTPClient):
        self.http_client = http_client
        self.logger = logging.getLogger(__name__)

    def validate_document_details(self, details: Any) -> DocumentDetails:
        """
        Validate URL and compression of the document details

        Raises:
            ResolutionError: If the URL is missing
            DecodeError: If the compression algorithm is not GZIP
        """
        details = DocumentDetails.from_value(details)
        if not details.url:
            raise ResolutionError('DOCUMENT_INFORMATION_MISSING', 'Please provide url')

        compression = details.compressionAlgorithm
        if compression and compression != SUPPORTED_COMPRESSION:
            raise DecodeError('UNKNOWN_ZIP_STANDARD', f"Cannot unzip {compression}, expecting GZIP")
        return details

    def validate_transfer_success(self, status_code: int, body: str, request_type: str) -> None:
        """
        Raise a structured error for non-200 transfer responses

        Args:
            status_code: HTTP status of the transfer
            body: Decoded response body
            request_type: 'DOWNLOAD' or 'UPLOAD'
        """
        if status_code == 200:
            return

        error = parse_error_envelope(body)
        if error and error.get('Code'):
            raise RemoteAPIError(error['Code'], error.get('Message'), status_code=status_code)

        raise RemoteAPIError(f"{request_type}_ERROR", body, status_code=status_code)

    def download(self, details: Any, options: Optional[Dict[str, Any]] = None) -> Any:
        """
        Download a report or feed result document

        Args:
            details: DocumentDetails (or mapping) with url and optional compressionAlgorithm
            options: unzip (default True), json, file, charset, timeouts

        Returns:
            Decoded text, structured content when json is requested, or raw bytes
            when compressed content is not unzipped
        """
        options = {'unzip': True, **(options or {})}
        details = self.validate_document_details(details)

        res = self.http_client.execute(TransportRequest(
            url=details.url,
            timeouts=options.get('timeouts') or {}
        ))
        content_type = res.headers.get('content-type')
        if res.status_code != 200:
            self.validate_transfer_success(res.status_code, decode_best_effort(res.content, content_type), 'DOWNLOAD')

        compressed = bool(details.compressionAlgorithm)
        content: Any = res.content
        if compressed and options['unzip']:
            content = self._gunzip(content)

        structured = False
        if not compressed or options['unzip']:
            content = decode_bytes(content, content_type, options.get('charset'))
            if options.get('json'):
                content = decode_structured(content, content_type)
                structured = not isinstance(content, str)

        if options.get('file'):
            self._save_file(content, Path(options['file']), structured)

        return content

    def download_stream(self, details: Any,
                        options: Optional[Dict[str, Any]] = None) -> Union[StreamedResponse, GunzipStream]:
        """
        Download a document as a live byte stream

        Args:
            details: DocumentDetails (or mapping) with url and optional compressionAlgorithm
            options: unzip (default True), timeouts

        Returns:
            Iterable of (decompressed, if requested) byte chunks. Callers must
            exhaust it or close it (it is a context manager) to release the response
        """
        options = {'unzip': True, **(options or {})}
        details = self.validate_document_details(details)

        res = self.http_client.stream(details.url, options.get('timeouts'))
        if res.status_code != 200:
            # Drain the stream once to classify the error
            body = decode_best_effort(b''.join(res.iter_chunks()), res.headers.get('content-type'))
            self.validate_transfer_success(res.status_code, body, 'DOWNLOAD')

        if details.compressionAlgorithm and options['unzip']:
            return GunzipStream(res)
        return res

    def upload(self, details: Any, feed: Optional[Dict[str, Any]]) -> Dict[str, bool]:
        """
        Upload feed content to a pre-signed URL

        Args:
            details: DocumentDetails (or mapping) with the upload url
            feed: content (str) or file (path), and contentType

        Returns:
            {'success': True}
        """
        details = self.validate_document_details(details)
        if not feed or (not feed.get('content') and not feed.get('file')):
            raise ResolutionError(
                'NO_FEED_CONTENT_PROVIDED',
                'Please provide "content" (string) or "file" (absolute path) of feed.'
            )
        content_type = feed.get('contentType')
        if not content_type:
            raise ResolutionError(
                'NO_FEED_CONTENT_TYPE_PROVIDED',
                'Please provide "contentType" of feed (should be identical to the contentType '
                'used in "createFeedDocument" operation).'
            )

        charset = charset_from_content_type(content_type) or 'utf-8'
        content = feed.get('content')
        if not content:
            content = self._read_file(Path(feed['file']), charset)

        payload = content if isinstance(content, bytes) else content.encode(self._codec(charset))

        res = self.http_client.execute(TransportRequest(
            url=details.url,
            method='PUT',
            headers={'Content-Type': content_type},
            body=payload
        ))
        if res.status_code != 200:
            body = decode_best_effort(res.content, res.headers.get('content-type'))
            self.validate_transfer_success(res.status_code, body, 'UPLOAD')
        return {'success': True}

    @staticmethod
    def _gunzip(content: bytes) -> bytes:
        try:
            return gzip.decompress(content)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError('UNZIP_ERROR', str(e)) from e

    @staticmethod
    def _codec(charset: str) -> str:
        # ISO-8859-1 and latin1 name the same codec
        codec = 'latin-1' if charset.upper() == 'ISO-8859-1' else charset
        try:
            codecs.lookup(codec)
        except LookupError as e:
            raise DecodeError('DECODE_ERROR', f"Encoding not recognized: '{charset}'") from e
        return codec

    def _read_file(self, path: Path, charset: str) -> str:
        with open(path, 'r', encoding=self._codec(charset)) as f:
            return f.read()

    def _save_file(self, content: Any, path: Path, structured: bool) -> None:
        if structured:
            content = json.dumps(content)

        if isinstance(content, bytes):
            with open(path, 'wb') as f:
                f.write(content)
        else:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)

        self.logger.debug(f"Saved document content to {path}")
