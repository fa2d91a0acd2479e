"""MIME type registry mapping canonical types to acceptance tags.

A caller selects acceptable content with a list of selectors. Each selector
is either a tag naming a bucket of types (``"images"``, ``"webpages"``) or a
literal MIME type (``"image/gif"``). The registry resolves both kinds through
the same lookup.
"""

from collections.abc import Iterable, Mapping
from functools import lru_cache
from types import MappingProxyType

from headfetch.fetch.constants import UNIVERSAL_TAG


def _entry(*tags: str) -> frozenset[str]:
    return frozenset((UNIVERSAL_TAG, *tags))


MIME_TAGS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        # Web pages and text
        "text/html": _entry("webpages", "webpage", "html", "text"),
        "application/xhtml+xml": _entry("webpages", "webpage", "html", "xhtml"),
        "text/plain": _entry("text", "plain", "txt"),
        "text/css": _entry("css", "stylesheet", "text"),
        "text/csv": _entry("csv", "text", "data"),
        "text/markdown": _entry("markdown", "text"),
        # Scripts
        "application/javascript": _entry("javascript", "js", "script"),
        "application/x-javascript": _entry("javascript", "js", "script"),
        "text/javascript": _entry("javascript", "js", "script", "text"),
        # Structured data
        "application/json": _entry("json", "data"),
        "application/ld+json": _entry("json", "data"),
        "application/xml": _entry("xml", "data"),
        "text/xml": _entry("xml", "data", "text"),
        # Feeds
        "application/rss+xml": _entry("feeds", "feed", "rss", "xml"),
        "application/atom+xml": _entry("feeds", "feed", "atom", "xml"),
        # Images
        "image/gif": _entry("image", "images", "gif"),
        "image/jpeg": _entry("image", "images", "jpeg", "jpg"),
        "image/pjpeg": _entry("image", "images", "jpeg", "jpg"),
        "image/png": _entry("image", "images", "png"),
        "image/webp": _entry("image", "images", "webp"),
        "image/svg+xml": _entry("image", "images", "svg", "xml"),
        "image/bmp": _entry("image", "images", "bmp"),
        "image/tiff": _entry("image", "images", "tiff"),
        "image/x-icon": _entry("image", "images", "icon", "ico"),
        "image/vnd.microsoft.icon": _entry("image", "images", "icon", "ico"),
        # Documents
        "application/pdf": _entry("pdf", "documents", "document"),
        "application/msword": _entry("doc", "documents", "document"),
        "application/rtf": _entry("rtf", "documents", "document"),
        # Audio
        "audio/mpeg": _entry("audio", "mp3"),
        "audio/ogg": _entry("audio", "ogg"),
        "audio/wav": _entry("audio", "wav"),
        # Video
        "video/mp4": _entry("video", "videos", "mp4"),
        "video/webm": _entry("video", "videos", "webm"),
        "video/quicktime": _entry("video", "videos", "mov"),
        # Archives and binary
        "application/zip": _entry("archives", "archive", "zip"),
        "application/gzip": _entry("archives", "archive", "gzip"),
        "application/x-tar": _entry("archives", "archive", "tar"),
        "application/octet-stream": _entry("binary"),
    }
)


class MimeRegistry:
    """Read-only lookup between MIME types and acceptance tags."""

    def __init__(self, table: Mapping[str, frozenset[str]] = MIME_TAGS) -> None:
        """Initialize the registry.

        Args:
            table: Mapping of canonical MIME type to its tags.

        Raises:
            ValueError: If an entry has no tags or lacks the universal tag.
        """
        for mime_type, tags in table.items():
            if not tags:
                msg = f"MIME type '{mime_type}' has an empty tag set"
                raise ValueError(msg)
            if UNIVERSAL_TAG not in tags:
                msg = f"MIME type '{mime_type}' is missing the '{UNIVERSAL_TAG}' tag"
                raise ValueError(msg)
        self._table = MappingProxyType(
            {mime.lower(): frozenset(tags) for mime, tags in table.items()}
        )
        self._tags = frozenset().union(*self._table.values())

    @property
    def mime_types(self) -> frozenset[str]:
        """All registered MIME types."""
        return frozenset(self._table)

    @property
    def tags(self) -> frozenset[str]:
        """Every tag used by at least one entry."""
        return self._tags

    def tags_for(self, mime_type: str) -> frozenset[str]:
        """Get the tags a MIME type satisfies.

        Args:
            mime_type: Canonical MIME type.

        Returns:
            Tag set, empty if the type is not registered.
        """
        return self._table.get(mime_type.strip().lower(), frozenset())

    def mime_types_for_tags(self, selectors: Iterable[str]) -> frozenset[str]:
        """Expand selectors into the set of acceptable MIME types.

        A registered type is included when the type itself appears among
        the selectors, or when its tag set shares at least one tag with
        them. Unknown selectors match nothing.

        Args:
            selectors: Tags and/or literal MIME types.

        Returns:
            Matching MIME types (empty when nothing matches).
        """
        wanted = frozenset(selectors)
        if not wanted:
            return frozenset()
        return frozenset(
            mime_type
            for mime_type, tags in self._table.items()
            if mime_type in wanted or not tags.isdisjoint(wanted)
        )

    def is_known_selector(self, selector: str) -> bool:
        """Check if a selector is a registered tag or MIME type."""
        return selector in self._tags or selector in self._table


@lru_cache(maxsize=1)
def default_registry() -> MimeRegistry:
    """Get the process-wide registry built from ``MIME_TAGS``."""
    return MimeRegistry()
