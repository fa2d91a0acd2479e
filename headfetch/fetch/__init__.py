"""HTTP fetch layer with a HEAD probe ahead of every body request.

This module provides:
- A MIME registry resolving tags and literal types to acceptable types
- Policy validation of status, content type and declared length
- A fetch session streaming bodies under a byte ceiling
- One error record per request cycle instead of raised exceptions
"""

from headfetch.fetch.charset import CharsetDetector, MetaCharsetParser, header_charset
from headfetch.fetch.config import AuthCredentials, PolicyConfig, RequestConfig
from headfetch.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_MS,
    UNIVERSAL_TAG,
)
from headfetch.fetch.cookies import CookieJarStore
from headfetch.fetch.errors import (
    CookieJarNotWritableError,
    ErrorKind,
    ErrorRecord,
    HeadFetchError,
    MimePolicyError,
    MissingCollaboratorError,
    SessionBusyError,
    SizeLimitError,
    SizeLimitVariant,
    StatusPolicyError,
    TransportError,
    TransportErrorCode,
    transport_error_name,
)
from headfetch.fetch.metrics import FetchMetrics
from headfetch.fetch.mimes import MIME_TAGS, MimeRegistry, default_registry
from headfetch.fetch.models import (
    ChunkDecision,
    ResponseMetadata,
    TransportFailure,
    TransportResult,
)
from headfetch.fetch.policy import PolicyResolver, format_bytes
from headfetch.fetch.redact import redact_headers, redact_url_credentials
from headfetch.fetch.session import FetchSession
from headfetch.fetch.sink import BodySink
from headfetch.fetch.state_machine import (
    SessionState,
    SessionStateError,
    SessionStateMachine,
)
from headfetch.fetch.transport import HttpxTransport, Transport, classify_exception


__all__ = [
    # Session
    "FetchSession",
    "SessionState",
    "SessionStateError",
    "SessionStateMachine",
    # Registry and policy
    "MIME_TAGS",
    "MimeRegistry",
    "default_registry",
    "PolicyResolver",
    "format_bytes",
    # Config
    "AuthCredentials",
    "PolicyConfig",
    "RequestConfig",
    # Models
    "ChunkDecision",
    "ResponseMetadata",
    "TransportFailure",
    "TransportResult",
    "BodySink",
    # Errors
    "ErrorKind",
    "ErrorRecord",
    "TransportError",
    "StatusPolicyError",
    "MimePolicyError",
    "SizeLimitError",
    "SizeLimitVariant",
    "TransportErrorCode",
    "transport_error_name",
    "HeadFetchError",
    "CookieJarNotWritableError",
    "MissingCollaboratorError",
    "SessionBusyError",
    # Collaborators
    "Transport",
    "HttpxTransport",
    "classify_exception",
    "CookieJarStore",
    "CharsetDetector",
    "MetaCharsetParser",
    "header_charset",
    # Constants
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_MAX_BODY_BYTES",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_TIMEOUT_MS",
    "UNIVERSAL_TAG",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
