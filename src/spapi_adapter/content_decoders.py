"""
Content decoders turning downloaded documents into structured data

Decoders are tried in a fixed order and the first one that accepts the
content type wins. Content types no decoder accepts are returned as text.
"""

import codecs
import csv
import io
import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

from .errors import DecodeError


SPREADSHEET_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

_CHARSET_PATTERN = re.compile(r'charset=([^;]*)', re.IGNORECASE)


def charset_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Extract the charset parameter of a content-type header, if any"""
    if not content_type:
        return None
    match = _CHARSET_PATTERN.search(content_type)
    if match and match.group(1).strip():
        return match.group(1).strip().strip('"\'')
    return None


def decode_bytes(content: bytes, content_type: Optional[str] = None,
                 charset: Optional[str] = None) -> str:
    """
    Decode bytes using the explicit charset, the content-type charset or utf-8

    Raises:
        DecodeError: If the charset is unknown
    """
    charset = charset or charset_from_content_type(content_type) or 'utf-8'
    try:
        codecs.lookup(charset)
    except LookupError as e:
        raise DecodeError('DECODE_ERROR', f"Encoding not recognized: '{charset}'") from e
    return content.decode(charset, errors='replace')


def _local_name(tag: str) -> str:
    # Drop '{namespace}' prefixes added by ElementTree
    return tag.rsplit('}', 1)[-1]


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children:
        return (element.text or '').strip()

    result: Dict[str, Any] = {}
    for child in children:
        name = _local_name(child.tag)
        value = _element_to_value(child)
        if name in result:
            if not isinstance(result[name], list):
                result[name] = [result[name]]
            result[name].append(value)
        else:
            result[name] = value
    return result


def xml_to_dict(text: str) -> Dict[str, Any]:
    """
    Parse an XML document into nested dicts

    Repeated sibling elements become lists, leaf text stays a string and
    attributes are ignored.

    Raises:
        xml.etree.ElementTree.ParseError: If the text is not well-formed XML
    """
    root = ET.fromstring(text.strip())
    return {_local_name(root.tag): _element_to_value(root)}


def tab_delimited_to_rows(text: str) -> List[Dict[str, str]]:
    """Convert a tab-delimited flat file with a header line into row dicts, quoting disabled"""
    reader = csv.reader(io.StringIO(text), delimiter='\t', quoting=csv.QUOTE_NONE)
    header: Optional[List[str]] = None
    rows = []
    for values in reader:
        if not values or values == ['']:
            continue
        if header is None:
            header = values
            continue
        row = {}
        for index, value in enumerate(values):
            key = header[index] if index < len(header) else f"field{index + 1}"
            row[key] = value
        for key in header[len(values):]:
            row[key] = ''
        rows.append(row)
    return rows


class SpreadsheetDecoder:
    """Spreadsheets cannot be expressed as JSON"""

    def accepts(self, content_type: str) -> bool:
        return content_type.startswith(SPREADSHEET_CONTENT_TYPE)

    def decode(self, text: str) -> Any:
        raise DecodeError(
            'PARSE_ERROR',
            "Report is a .xlsx file. Could not parse result to JSON. Remove the 'json' option."
        )


class XmlDecoder:
    def accepts(self, content_type: str) -> bool:
        return 'xml' in content_type

    def decode(self, text: str) -> Any:
        try:
            return xml_to_dict(text)
        except ET.ParseError as e:
            raise DecodeError('PARSE_ERROR', 'Could not parse result to JSON.', details=text) from e


class PlainTextDecoder:
    """JSON first (some reports are JSON served as text/plain), then tab-delimited rows"""

    def accepts(self, content_type: str) -> bool:
        return 'plain' in content_type

    def decode(self, text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError:
            pass
        try:
            return tab_delimited_to_rows(text)
        except csv.Error as e:
            raise DecodeError('PARSE_ERROR', 'Could not parse result to JSON.', details=text) from e


DEFAULT_DECODERS = (SpreadsheetDecoder(), XmlDecoder(), PlainTextDecoder())


def decode_structured(text: str, content_type: Optional[str], decoders=DEFAULT_DECODERS) -> Any:
    """
    Transcode document text to structured data using the first matching decoder

    Args:
        text: Decoded document content
        content_type: Response content-type header
        decoders: Ordered decoders to try

    Returns:
        Structured content, or the text itself if no decoder accepts the content type
    """
    content_type = (content_type or '').lower()
    for decoder in decoders:
        if decoder.accepts(content_type):
            return decoder.decode(text)
    return text


def parse_error_envelope(body: str) -> Optional[Dict[str, Any]]:
    """Return the Error element of an XML error envelope, or None if there is none"""
    try:
        parsed = xml_to_dict(body)
    except ET.ParseError:
        return None
    error = parsed.get('Error')
    return error if isinstance(error, dict) else None


def decode_best_effort(content: bytes, content_type: Optional[str] = None) -> str:
    """Decode error bodies, falling back to utf-8 when the declared charset is unknown"""
    try:
        return decode_bytes(content, content_type)
    except DecodeError:
        return content.decode('utf-8', errors='replace')
