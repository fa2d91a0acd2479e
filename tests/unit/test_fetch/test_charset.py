"""Unit tests for charset discovery."""

import pytest

from headfetch.fetch.charset import (
    CharsetDetector,
    MetaCharsetParser,
    header_charset,
    normalize_charset,
)


class TestHeaderCharset:
    """Tests for Content-Type charset extraction."""

    @pytest.mark.parametrize(
        ("content_type", "expected"),
        [
            ("text/html; charset=UTF-8", "utf-8"),
            ("text/html;charset=utf8", "utf-8"),
            ('text/html; charset="ISO-8859-1"', "iso-8859-1"),
            ("text/html; Charset=windows-1252", "windows-1252"),
            ("text/html", None),
            ("", None),
        ],
    )
    def test_extract(self, content_type: str, expected: str | None) -> None:
        """Test charset parameter parsing."""
        assert header_charset(content_type) == expected

    def test_normalize(self) -> None:
        """Test alias folding."""
        assert normalize_charset(" UTF8 ") == "utf-8"
        assert normalize_charset("Shift_JIS") == "shift_jis"


class TestMetaCharsetParser:
    """Tests for document-declared charsets."""

    @pytest.fixture
    def parser(self) -> MetaCharsetParser:
        """Create a parser."""
        return MetaCharsetParser()

    def test_is_detector(self, parser: MetaCharsetParser) -> None:
        """Test that the parser satisfies the detector protocol."""
        assert isinstance(parser, CharsetDetector)

    def test_meta_charset(self, parser: MetaCharsetParser) -> None:
        """Test the HTML5 meta charset form."""
        body = b'<html><head><meta charset="EUC-JP"></head><body></body></html>'

        assert parser.detect(body, "https://example.com/") == "euc-jp"

    def test_http_equiv(self, parser: MetaCharsetParser) -> None:
        """Test the http-equiv Content-Type form."""
        body = (
            b'<html><head><meta http-equiv="Content-Type" '
            b'content="text/html; charset=koi8-r"></head></html>'
        )

        assert parser.detect(body, "https://example.com/") == "koi8-r"

    def test_no_declaration(self, parser: MetaCharsetParser) -> None:
        """Test documents without a declaration."""
        body = b"<html><head><title>x</title></head></html>"

        assert parser.detect(body, "https://example.com/") is None

    def test_empty_body(self, parser: MetaCharsetParser) -> None:
        """Test an empty body."""
        assert parser.detect(b"", "https://example.com/") is None
