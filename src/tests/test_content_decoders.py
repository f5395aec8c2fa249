"""
Test suite for content decoders
Following TDD approach with AAA pattern and descriptive naming
"""

import pytest

from spapi_adapter.content_decoders import (
    SPREADSHEET_CONTENT_TYPE,
    charset_from_content_type,
    decode_bytes,
    decode_structured,
    parse_error_envelope,
    tab_delimited_to_rows,
    xml_to_dict
)
from spapi_adapter.errors import DecodeError


class TestCharsetDecoding:
    """Test suite for charset handling"""

    @pytest.mark.parametrize('content_type,expected', [
        ('text/plain; charset=Cp1252', 'Cp1252'),
        ('text/xml;charset="UTF-8"', 'UTF-8'),
        ('text/plain', None),
        (None, None),
    ])
    def test_charset_from_content_type(self, content_type, expected):
        """
        Test extraction of the charset parameter
        """
        # Act & Assert
        assert charset_from_content_type(content_type) == expected

    def test_decode_bytes_uses_content_type_charset(self):
        """
        Test that latin-1 content is decoded with the declared charset
        """
        # Act
        result = decode_bytes('Größe'.encode('iso-8859-1'), 'text/plain; charset=ISO-8859-1')

        # Assert
        assert result == 'Größe'

    def test_decode_bytes_explicit_charset_wins(self):
        """
        Test that an explicit charset overrides the header
        """
        # Act
        result = decode_bytes('Größe'.encode('cp1252'), 'text/plain; charset=UTF-8', charset='cp1252')

        # Assert
        assert result == 'Größe'

    def test_decode_bytes_with_unknown_charset_raises(self):
        """
        Test that unknown charsets are a decode error
        """
        # Act & Assert
        with pytest.raises(DecodeError) as exc_info:
            decode_bytes(b'abc', 'text/plain; charset=made-up-charset')

        assert exc_info.value.code == 'DECODE_ERROR'


class TestStructuredDecoding:
    """Test suite for report content transcoding"""

    def test_tab_delimited_rows_keep_quotes_literally(self):
        """
        Test that quote characters are not treated as escapes
        """
        # Arrange
        text = 'sku\ttitle\tprice\nA1\t12" "Pipe\t9.99\nB2\tShort\n'

        # Act
        rows = tab_delimited_to_rows(text)

        # Assert
        assert rows == [
            {'sku': 'A1', 'title': '12" "Pipe', 'price': '9.99'},
            {'sku': 'B2', 'title': 'Short', 'price': ''}
        ]

    def test_tab_delimited_rows_name_extra_columns(self):
        """
        Test that values beyond the header get generated names
        """
        # Act
        rows = tab_delimited_to_rows('a\tb\n1\t2\t3\n')

        # Assert
        assert rows == [{'a': '1', 'b': '2', 'field3': '3'}]

    def test_decode_structured_plain_json(self):
        """
        Test that JSON served as text/plain is parsed as JSON
        """
        # Act
        result = decode_structured('{"a": [1, 2]}', 'text/plain; charset=UTF-8')

        # Assert
        assert result == {'a': [1, 2]}

    def test_decode_structured_plain_tab_delimited(self):
        """
        Test that non-JSON plain text is parsed as a flat file
        """
        # Act
        result = decode_structured('sku\tqty\nA1\t3\n', 'text/plain')

        # Assert
        assert result == [{'sku': 'A1', 'qty': '3'}]

    def test_decode_structured_xml(self):
        """
        Test that XML becomes nested dicts with repeated elements as lists
        """
        # Arrange
        text = (
            '<?xml version="1.0"?>'
            '<AmazonEnvelope xmlns="http://example.com/ns">'
            '<Message><Id>1</Id></Message>'
            '<Message><Id>2</Id></Message>'
            '</AmazonEnvelope>'
        )

        # Act
        result = decode_structured(text, 'text/xml')

        # Assert
        assert result == {'AmazonEnvelope': {'Message': [{'Id': '1'}, {'Id': '2'}]}}

    def test_decode_structured_invalid_xml_raises_parse_error(self):
        """
        Test that malformed XML is a parse error
        """
        # Act & Assert
        with pytest.raises(DecodeError) as exc_info:
            decode_structured('<open>', 'application/xml')

        assert exc_info.value.code == 'PARSE_ERROR'

    def test_decode_structured_spreadsheet_raises_parse_error(self):
        """
        Test that spreadsheets are rejected for structured decoding
        """
        # Act & Assert
        with pytest.raises(DecodeError) as exc_info:
            decode_structured('PK...', SPREADSHEET_CONTENT_TYPE)

        assert exc_info.value.code == 'PARSE_ERROR'

    def test_decode_structured_unknown_type_returns_text(self):
        """
        Test that content types without a decoder are returned unchanged
        """
        # Act & Assert
        assert decode_structured('a,b', 'text/csv') == 'a,b'

    def test_decode_structured_uses_first_accepting_decoder(self):
        """
        Test that decoder order decides which one handles a content type
        """
        # Arrange
        class Upper:
            def accepts(self, content_type):
                return True

            def decode(self, text):
                return text.upper()

        # Act
        result = decode_structured('abc', 'text/xml', decoders=(Upper(),))

        # Assert
        assert result == 'ABC'

    def test_xml_to_dict_leaf_values_stay_strings(self):
        """
        Test that numeric-looking leaves are not coerced
        """
        # Act & Assert
        assert xml_to_dict('<a><b>007</b></a>') == {'a': {'b': '007'}}

    def test_parse_error_envelope(self):
        """
        Test extraction of the Error element of an XML error body
        """
        # Arrange
        body = '<Error><Code>AccessDenied</Code><Message>Request has expired</Message></Error>'

        # Act & Assert
        assert parse_error_envelope(body) == {'Code': 'AccessDenied', 'Message': 'Request has expired'}
        assert parse_error_envelope('not xml') is None
