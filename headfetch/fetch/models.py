"""Data models for the fetch layer."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ChunkDecision(str, Enum):
    """Answer returned by a body sink for each streamed chunk."""

    CONTINUE = "CONTINUE"
    ABORT = "ABORT"


class TransportFailure(BaseModel):
    """Failure reported by the transport (non-zero code)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    code: int = Field(description="Non-zero transport error code")
    message: str = Field(default="", description="Transport error message")


class ResponseMetadata(BaseModel):
    """Metadata captured for one HEAD or body-bearing request.

    Produced fresh per request; a session keeps the probe's metadata and
    the body request's metadata in separate slots.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: str = Field(description="HTTP method that produced this metadata")
    http_status: Annotated[int, Field(ge=0, le=999)] = 0
    resolved_url: str = Field(description="Final URL after redirects")
    content_type: str = Field(default="", description="Raw Content-Type header")
    declared_content_length: Annotated[int, Field(ge=0)] | None = Field(
        default=None, description="Content-Length reported by the server"
    )
    observed_bytes_read: Annotated[int, Field(ge=0)] = 0
    transport_error: TransportFailure | None = None
    duration_ms: Annotated[float, Field(ge=0.0)] = 0.0

    @property
    def mime_type(self) -> str:
        """Content type without parameters, trimmed and lower-cased."""
        return self.content_type.split(";", 1)[0].strip().lower()

    @property
    def succeeded(self) -> bool:
        """Check if the transport completed without error."""
        return self.transport_error is None


class TransportResult(BaseModel):
    """Outcome of ``Transport.execute``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    metadata: ResponseMetadata
    aborted: bool = Field(
        default=False, description="Whether the body sink stopped the transfer"
    )

    @property
    def transport_error(self) -> TransportFailure | None:
        """Shortcut to the metadata's transport failure."""
        return self.metadata.transport_error
