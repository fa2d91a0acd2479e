"""Acceptance policy evaluation for probed resources."""

from collections.abc import Mapping
from typing import Any

from headfetch.fetch.config import PolicyConfig
from headfetch.fetch.errors import (
    ErrorRecord,
    MimePolicyError,
    SizeLimitError,
    SizeLimitVariant,
    StatusPolicyError,
)
from headfetch.fetch.mimes import MimeRegistry, default_registry
from headfetch.fetch.models import ResponseMetadata


_BYTE_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")


def format_bytes(size: int) -> str:
    """Format a byte count in binary units.

    Args:
        size: Number of bytes.

    Returns:
        String such as ``"512 B"`` or ``"1.00 MiB"``.
    """
    if size < 1024:
        return f"{size} B"
    value = float(size)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS[1:]:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.2f} {unit}"


class PolicyResolver:
    """Expands acceptance tags and checks response metadata against policy.

    Checks run in a fixed order and the first failure wins:
    status, then MIME type, then declared length. An error status rarely
    carries a meaningful type or size, so it is reported first.
    """

    def __init__(self, registry: MimeRegistry | None = None) -> None:
        """Initialize the resolver.

        Args:
            registry: MIME registry (defaults to the process-wide one).
        """
        self._registry = registry or default_registry()

    @property
    def registry(self) -> MimeRegistry:
        """Get the backing registry."""
        return self._registry

    def build_policy(self, data: Mapping[str, Any]) -> PolicyConfig:
        """Validate policy fields against this resolver's registry.

        Args:
            data: PolicyConfig fields.

        Returns:
            Validated policy.

        Raises:
            pydantic.ValidationError: If a selector is unknown to the registry.
        """
        return PolicyConfig.model_validate(data, context={"registry": self._registry})

    def accepted_mime_types(self, policy: PolicyConfig) -> frozenset[str]:
        """Get the MIME types a policy accepts."""
        return self._registry.mime_types_for_tags(policy.accepted_tags)

    def compute_accept_header(self, policy: PolicyConfig) -> str:
        """Build the ``Accept`` header value for a body request.

        Args:
            policy: Acceptance policy.

        Returns:
            Comma-joined MIME types, or an empty string when none apply.
        """
        return ",".join(sorted(self.accepted_mime_types(policy)))

    def validate(
        self,
        metadata: ResponseMetadata,
        policy: PolicyConfig,
    ) -> ErrorRecord | None:
        """Evaluate metadata against a policy.

        Args:
            metadata: Metadata from a probe.
            policy: Acceptance policy.

        Returns:
            The first failing check as an ErrorRecord, or None if valid.
        """
        if metadata.http_status not in policy.accepted_status_codes:
            return StatusPolicyError(
                status_code=metadata.http_status,
                url=metadata.resolved_url,
                message=(
                    f"{metadata.http_status} status code received while trying "
                    f"to retrieve {metadata.resolved_url}"
                ),
            )

        accepted = self.accepted_mime_types(policy)
        mime_type = metadata.mime_type
        if mime_type not in accepted:
            accepted_list = tuple(sorted(accepted))
            shown = ", ".join(accepted_list) if accepted_list else "(none)"
            return MimePolicyError(
                mime_type=mime_type,
                accepted=accepted_list,
                message=(
                    f"Mime-type requirement not met. Resource is "
                    f"{mime_type or '(unspecified)'}. Expected one of: {shown}."
                ),
            )

        declared = metadata.declared_content_length
        if declared is not None and declared > policy.max_body_bytes:
            return SizeLimitError(
                variant=SizeLimitVariant.DECLARED,
                limit_bytes=policy.max_body_bytes,
                actual_bytes=declared,
                message=(
                    f"File size limit reached. Limit was set to "
                    f"{format_bytes(policy.max_body_bytes)}. Resource is "
                    f"{format_bytes(declared)}."
                ),
            )

        return None

    def streamed_overflow(self, received: int, policy: PolicyConfig) -> SizeLimitError:
        """Build the error recorded when a streamed body crosses the limit.

        Args:
            received: Bytes buffered when the transfer was aborted.
            policy: Acceptance policy.

        Returns:
            SizeLimitError with the STREAMED variant.
        """
        return SizeLimitError(
            variant=SizeLimitVariant.STREAMED,
            limit_bytes=policy.max_body_bytes,
            actual_bytes=received,
            message=(
                f"Size exceeded while streaming. Limit was set to "
                f"{format_bytes(policy.max_body_bytes)}; received "
                f"{format_bytes(received)} before aborting."
            ),
        )
