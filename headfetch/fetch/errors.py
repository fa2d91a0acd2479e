"""Error taxonomy for the fetch layer.

Two families live here:

- ``ErrorRecord`` variants are data, not exceptions. A request cycle stores
  at most one of them and callers read it from the session.
- ``HeadFetchError`` subclasses are raised for broken deployments
  (unwritable cookie jar, missing collaborator, misuse of a busy session)
  before any network call is attempted.
"""

from enum import Enum, IntEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """Kind of failure recorded for a request cycle.

    - TRANSPORT: DNS/TCP/TLS/timeout/redirect failures from the transport
    - STATUS_POLICY: HTTP status not in the accepted set
    - MIME_POLICY: Content type not in the accepted set
    - SIZE_LIMIT: Declared or streamed body exceeds the byte ceiling
    """

    TRANSPORT = "TRANSPORT"
    STATUS_POLICY = "STATUS_POLICY"
    MIME_POLICY = "MIME_POLICY"
    SIZE_LIMIT = "SIZE_LIMIT"


class SizeLimitVariant(str, Enum):
    """Where a size limit breach was detected."""

    DECLARED = "DECLARED"
    STREAMED = "STREAMED"


class TransportErrorCode(IntEnum):
    """Transport failure codes, numbered after libcurl's CURLcode values."""

    UNSUPPORTED_PROTOCOL = 1
    URL_MALFORMAT = 3
    COULDNT_RESOLVE_PROXY = 5
    COULDNT_RESOLVE_HOST = 6
    COULDNT_CONNECT = 7
    WRITE_ERROR = 23
    OPERATION_TIMEDOUT = 28
    SSL_CONNECT_ERROR = 35
    ABORTED_BY_CALLBACK = 42
    TOO_MANY_REDIRECTS = 47
    GOT_NOTHING = 52
    SEND_ERROR = 55
    RECV_ERROR = 56
    PEER_FAILED_VERIFICATION = 60
    BAD_CONTENT_ENCODING = 61
    UNKNOWN = 1000


UNKNOWN_TRANSPORT_ERROR_NAME = "UNKNOWN"


def transport_error_name(code: int) -> str:
    """Map a numeric transport code to its symbolic name.

    Args:
        code: Non-zero transport error code.

    Returns:
        Symbolic name, or ``UNKNOWN`` for unmapped codes.
    """
    try:
        return TransportErrorCode(code).name
    except ValueError:
        return UNKNOWN_TRANSPORT_ERROR_NAME


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    message: Annotated[str, Field(min_length=1, description="Human-readable message")]


class TransportError(_RecordBase):
    """Transport-level failure surfaced verbatim from the transport."""

    kind: Literal[ErrorKind.TRANSPORT] = ErrorKind.TRANSPORT
    code: int = Field(description="Numeric transport error code")
    name: str = Field(description="Symbolic name of the transport code")

    @classmethod
    def from_code(cls, code: int, message: str) -> "TransportError":
        """Build a record, resolving the symbolic name of ``code``.

        An empty ``message`` is replaced by the symbolic name.
        """
        name = transport_error_name(code)
        return cls(code=code, name=name, message=message or name)


class StatusPolicyError(_RecordBase):
    """HTTP status code rejected by policy."""

    kind: Literal[ErrorKind.STATUS_POLICY] = ErrorKind.STATUS_POLICY
    status_code: int
    url: str


class MimePolicyError(_RecordBase):
    """Content type rejected by policy."""

    kind: Literal[ErrorKind.MIME_POLICY] = ErrorKind.MIME_POLICY
    mime_type: str
    accepted: tuple[str, ...] = ()


class SizeLimitError(_RecordBase):
    """Body size above the configured ceiling."""

    kind: Literal[ErrorKind.SIZE_LIMIT] = ErrorKind.SIZE_LIMIT
    variant: SizeLimitVariant
    limit_bytes: int
    actual_bytes: int


ErrorRecord = Annotated[
    TransportError | StatusPolicyError | MimePolicyError | SizeLimitError,
    Field(discriminator="kind"),
]


class HeadFetchError(Exception):
    """Base class for fatal configuration errors."""


class CookieJarNotWritableError(HeadFetchError):
    """Raised when the cookie jar path cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialize the error.

        Args:
            path: The offending file or directory.
            reason: What check failed.
        """
        self.path = path
        super().__init__(f"Path '{path}' must be writable for cookie storage: {reason}")


class MissingCollaboratorError(HeadFetchError):
    """Raised when a required collaborator is absent or unusable."""

    def __init__(self, name: str, detail: str) -> None:
        """Initialize the error.

        Args:
            name: Collaborator name (e.g. ``transport``).
            detail: Why it cannot be used.
        """
        self.name = name
        super().__init__(f"Missing collaborator '{name}': {detail}")


class SessionBusyError(HeadFetchError):
    """Raised when a session is reconfigured while a request is in flight."""
