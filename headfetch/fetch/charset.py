"""Character set discovery for fetched documents."""

import re
from typing import Protocol, runtime_checkable

from bs4 import BeautifulSoup


_CHARSET_PATTERN = re.compile(r"charset=[\"']?([a-zA-Z0-9_-]+)", re.IGNORECASE)

# Only the document head is needed to find a meta charset
_META_SCAN_BYTES = 64 * 1024


def normalize_charset(charset: str) -> str:
    """Lower-case a charset label and fold the ``utf8`` alias."""
    value = charset.strip().lower()
    if value == "utf8":
        return "utf-8"
    return value


def header_charset(content_type: str) -> str | None:
    """Extract the charset parameter of a Content-Type value.

    Args:
        content_type: Raw Content-Type header.

    Returns:
        Normalized charset, or None if absent.
    """
    match = _CHARSET_PATTERN.search(content_type or "")
    if match is None:
        return None
    return normalize_charset(match.group(1))


@runtime_checkable
class CharsetDetector(Protocol):
    """Finds the charset a document declares about itself."""

    def detect(self, body: bytes, url: str) -> str | None:
        """Detect a declared charset.

        Args:
            body: Response body.
            url: Resolved URL of the document.

        Returns:
            Declared charset, or None when the document declares none.
        """
        ...


class MetaCharsetParser:
    """Reads ``<meta charset>`` and ``http-equiv`` declarations with BeautifulSoup."""

    def detect(self, body: bytes, url: str) -> str | None:  # noqa: ARG002
        """Detect the charset declared in HTML meta tags."""
        if not body:
            return None
        soup = BeautifulSoup(body[:_META_SCAN_BYTES], "html.parser")

        for meta in soup.find_all("meta"):
            charset = meta.get("charset")
            if charset:
                return normalize_charset(str(charset))

            http_equiv = str(meta.get("http-equiv", "")).lower()
            if http_equiv == "content-type":
                declared = header_charset(str(meta.get("content", "")))
                if declared:
                    return declared

        return None
