"""Unit tests for policy evaluation."""

import pytest

from headfetch.fetch.config import PolicyConfig
from headfetch.fetch.errors import (
    ErrorKind,
    MimePolicyError,
    SizeLimitError,
    SizeLimitVariant,
    StatusPolicyError,
)
from headfetch.fetch.mimes import MimeRegistry
from headfetch.fetch.models import ResponseMetadata
from headfetch.fetch.policy import PolicyResolver, format_bytes


def head(
    status: int = 200,
    content_type: str = "text/html",
    declared: int | None = None,
    url: str = "https://example.com/resource",
) -> ResponseMetadata:
    """Build probe metadata."""
    return ResponseMetadata(
        method="HEAD",
        http_status=status,
        resolved_url=url,
        content_type=content_type,
        declared_content_length=declared,
    )


@pytest.fixture
def resolver() -> PolicyResolver:
    """Create a resolver over the default registry."""
    return PolicyResolver()


class TestFormatBytes:
    """Tests for human-readable sizes."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 B"),
            (512, "512 B"),
            (1024, "1.00 KiB"),
            (1_048_576, "1.00 MiB"),
            (2_000_000, "1.91 MiB"),
            (3 * 1024**3, "3.00 GiB"),
        ],
    )
    def test_format(self, size: int, expected: str) -> None:
        """Test formatting across units."""
        assert format_bytes(size) == expected


class TestAcceptHeader:
    """Tests for the Accept header value."""

    def test_joins_accepted_types(self, resolver: PolicyResolver) -> None:
        """Test comma-joined, sorted output."""
        policy = PolicyConfig(accepted_tags=frozenset({"webpages"}))

        assert resolver.compute_accept_header(policy) == (
            "application/xhtml+xml,text/html"
        )

    def test_empty_policy_gives_empty_header(self, resolver: PolicyResolver) -> None:
        """Test that deny-all produces no Accept value."""
        policy = PolicyConfig(accepted_tags=frozenset())

        assert resolver.compute_accept_header(policy) == ""

    def test_literal_type(self, resolver: PolicyResolver) -> None:
        """Test a single literal selector."""
        policy = PolicyConfig(accepted_tags=frozenset({"image/gif"}))

        assert resolver.compute_accept_header(policy) == "image/gif"


class TestValidateStatus:
    """Tests for the status check."""

    def test_404_rejected_before_mime_and_size(self, resolver: PolicyResolver) -> None:
        """Test that a bad status wins even when MIME and size also fail."""
        policy = PolicyConfig(accepted_status_codes=frozenset({200}))
        metadata = head(
            status=404, content_type="application/x-unknown", declared=10**9
        )

        error = resolver.validate(metadata, policy)

        assert isinstance(error, StatusPolicyError)
        assert error.kind == ErrorKind.STATUS_POLICY
        assert error.status_code == 404
        assert "404" in error.message
        assert "https://example.com/resource" in error.message

    def test_custom_status_codes(self, resolver: PolicyResolver) -> None:
        """Test that additional status codes can be accepted."""
        policy = PolicyConfig(accepted_status_codes=frozenset({200, 203}))

        assert resolver.validate(head(status=203), policy) is None

    def test_zero_status_rejected(self, resolver: PolicyResolver) -> None:
        """Test that metadata without a status fails the status check."""
        error = resolver.validate(head(status=0), PolicyConfig())

        assert isinstance(error, StatusPolicyError)


class TestValidateMime:
    """Tests for the MIME check."""

    def test_charset_suffix_stripped(self, resolver: PolicyResolver) -> None:
        """Test that parameters after ';' are ignored."""
        policy = PolicyConfig(accepted_tags=frozenset({"webpages"}))

        metadata = head(content_type="text/html; charset=utf-8")

        assert resolver.validate(metadata, policy) is None

    def test_uppercase_type(self, resolver: PolicyResolver) -> None:
        """Test that the comparison ignores case."""
        policy = PolicyConfig(accepted_tags=frozenset({"webpages"}))

        assert resolver.validate(head(content_type="Text/HTML"), policy) is None

    def test_mismatch(self, resolver: PolicyResolver) -> None:
        """Test that a GIF fails a webpages policy."""
        policy = PolicyConfig(accepted_tags=frozenset({"webpages"}))

        error = resolver.validate(head(content_type="image/gif"), policy)

        assert isinstance(error, MimePolicyError)
        assert error.mime_type == "image/gif"
        assert error.accepted == ("application/xhtml+xml", "text/html")
        assert "image/gif" in error.message
        assert "text/html" in error.message

    def test_empty_tags_always_fail(self, resolver: PolicyResolver) -> None:
        """Test that deny-all rejects every content type."""
        policy = PolicyConfig(accepted_tags=frozenset())

        for content_type in ("text/html", "image/gif", "application/json", ""):
            error = resolver.validate(head(content_type=content_type), policy)
            assert isinstance(error, MimePolicyError)

    def test_missing_content_type(self, resolver: PolicyResolver) -> None:
        """Test that an absent Content-Type fails even with 'all'."""
        policy = PolicyConfig(accepted_tags=frozenset({"all"}))

        error = resolver.validate(head(content_type=""), policy)

        assert isinstance(error, MimePolicyError)
        assert "(unspecified)" in error.message

    def test_mime_checked_before_size(self, resolver: PolicyResolver) -> None:
        """Test that a MIME failure wins over a size failure."""
        policy = PolicyConfig(accepted_tags=frozenset({"webpages"}), max_body_bytes=10)

        error = resolver.validate(head(content_type="image/gif", declared=100), policy)

        assert isinstance(error, MimePolicyError)


class TestValidateSize:
    """Tests for the declared length check."""

    def test_declared_over_limit(self, resolver: PolicyResolver) -> None:
        """Test a 2 MB GIF against a 1 MiB limit."""
        policy = PolicyConfig(
            accepted_tags=frozenset({"images"}), max_body_bytes=1_048_576
        )

        error = resolver.validate(
            head(content_type="image/gif", declared=2_000_000), policy
        )

        assert isinstance(error, SizeLimitError)
        assert error.variant == SizeLimitVariant.DECLARED
        assert error.limit_bytes == 1_048_576
        assert error.actual_bytes == 2_000_000
        assert "1.00 MiB" in error.message
        assert "1.91 MiB" in error.message

    def test_declared_at_limit(self, resolver: PolicyResolver) -> None:
        """Test that a length equal to the limit passes."""
        policy = PolicyConfig(max_body_bytes=1000)

        assert resolver.validate(head(declared=1000), policy) is None

    def test_undeclared_length_passes(self, resolver: PolicyResolver) -> None:
        """Test that a missing Content-Length defers to streaming."""
        policy = PolicyConfig(max_body_bytes=0)

        assert resolver.validate(head(declared=None), policy) is None

    def test_streamed_overflow_record(self, resolver: PolicyResolver) -> None:
        """Test the record built for a streamed breach."""
        policy = PolicyConfig(max_body_bytes=1_048_576)

        error = resolver.streamed_overflow(1_114_112, policy)

        assert error.variant == SizeLimitVariant.STREAMED
        assert error.kind == ErrorKind.SIZE_LIMIT
        assert "while streaming" in error.message
        assert "1.06 MiB" in error.message


class TestBuildPolicy:
    """Tests for validating policies against a resolver's registry."""

    def test_custom_literal_type(self) -> None:
        """Test that a type from a custom table is a valid selector."""
        resolver = PolicyResolver(
            MimeRegistry({"application/x-custom": frozenset({"all", "custom"})})
        )

        policy = resolver.build_policy({"accepted_tags": ["application/x-custom"]})

        assert policy.accepted_tags == {"application/x-custom"}
        assert resolver.compute_accept_header(policy) == "application/x-custom"

    def test_default_table_rejects_custom_type(self) -> None:
        """Test that the same selector fails against the default table."""
        with pytest.raises(ValueError, match="Unknown MIME selectors"):
            PolicyConfig(accepted_tags={"application/x-custom"})

    def test_custom_table_rejects_default_tag(self) -> None:
        """Test that selectors are checked against the resolver's own table."""
        resolver = PolicyResolver(
            MimeRegistry({"application/x-custom": frozenset({"all", "custom"})})
        )

        with pytest.raises(ValueError, match="webpages"):
            resolver.build_policy({"accepted_tags": ["webpages"]})
