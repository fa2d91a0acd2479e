"""Fetch session: probe a resource with HEAD, validate, then download it.

A session runs one request cycle at a time::

    session = FetchSession(policy=PolicyConfig(accepted_tags={"images"}))
    body = session.get("https://example.com/logo.gif")
    if body is None:
        print(session.error.message)

Failures inside a cycle (transport errors, policy rejections, size limit
breaches) never raise. They are stored as a single ``ErrorRecord`` and the
body call returns None. Sessions are not safe for concurrent use; run one
session per in-flight request, and give sessions distinct cookie jar paths
unless access to a shared jar is serialized by the caller.
"""

import time
import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import structlog

from headfetch.fetch.charset import CharsetDetector, MetaCharsetParser, header_charset
from headfetch.fetch.config import AuthCredentials, PolicyConfig, RequestConfig
from headfetch.fetch.constants import FORM_CONTENT_TYPE, PROBE_ACCEPT
from headfetch.fetch.cookies import CookieJarStore
from headfetch.fetch.errors import (
    ErrorRecord,
    MissingCollaboratorError,
    SessionBusyError,
    SizeLimitError,
    TransportError,
)
from headfetch.fetch.metrics import FetchMetrics
from headfetch.fetch.models import ResponseMetadata, TransportResult
from headfetch.fetch.policy import PolicyResolver
from headfetch.fetch.redact import redact_url_credentials
from headfetch.fetch.sink import BodySink
from headfetch.fetch.state_machine import (
    SessionState,
    SessionStateError,
    SessionStateMachine,
)
from headfetch.fetch.transport import ChunkCallback, HttpxTransport, Transport


if TYPE_CHECKING:
    from headfetch.settings.app import AppSettings


logger = structlog.get_logger()

BODY_METHODS = frozenset({"GET", "POST"})


class FetchSession:
    """Probe-then-fetch HTTP client with policy validation.

    Owns one RequestConfig and one PolicyConfig. Both can be changed
    between requests but not while one is in flight.
    """

    def __init__(
        self,
        request_config: RequestConfig | None = None,
        policy: PolicyConfig | None = None,
        *,
        transport: Transport | None = None,
        resolver: PolicyResolver | None = None,
        charset_detector: CharsetDetector | None = None,
        session_id: str | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            request_config: Request settings (defaults if omitted).
            policy: Acceptance policy (defaults if omitted).
            transport: Transport collaborator (httpx if omitted).
            resolver: Policy resolver (default registry if omitted).
            charset_detector: Detector for document-declared charsets.
            session_id: Identifier bound to log events.

        Raises:
            MissingCollaboratorError: If a collaborator lacks its interface.
            CookieJarNotWritableError: If the configured jar is unusable.
            pydantic.ValidationError: If ``policy`` names selectors unknown
                to the resolver's registry.
        """
        transport = transport if transport is not None else HttpxTransport()
        if not isinstance(transport, Transport):
            raise MissingCollaboratorError("transport", "object has no execute()")
        detector = (
            charset_detector if charset_detector is not None else MetaCharsetParser()
        )
        if not isinstance(detector, CharsetDetector):
            raise MissingCollaboratorError("charset_detector", "object has no detect()")

        self._session_id = session_id or uuid.uuid4().hex[:12]
        self._transport = transport
        self._resolver = resolver or PolicyResolver()
        self._charset_detector = detector
        self._request_config = request_config or RequestConfig()
        self._policy = (
            self._resolver.build_policy(policy.model_dump())
            if policy is not None
            else PolicyConfig()
        )
        self._metrics = FetchMetrics.get_instance()
        self._machine = SessionStateMachine(self._session_id)
        self._log = logger.bind(component="session", session_id=self._session_id)
        self._in_flight = False

        self._error: ErrorRecord | None = None
        self._head_metadata: ResponseMetadata | None = None
        self._head_url: str | None = None
        self._body_metadata: ResponseMetadata | None = None
        self._body: bytes | None = None

        self._verify_cookie_jar()

    @classmethod
    def from_settings(
        cls,
        settings: "AppSettings | None" = None,
        **kwargs: Any,
    ) -> "FetchSession":
        """Build a session from environment settings.

        Args:
            settings: Settings instance (loaded from the environment if None).
            **kwargs: Extra constructor arguments (transport, session_id...).

        Returns:
            Configured FetchSession.
        """
        from headfetch.settings.app import get_settings

        settings = settings or get_settings()
        return cls(settings.request_config(), settings.policy_config(), **kwargs)

    # Accessors

    @property
    def session_id(self) -> str:
        """Get the session identifier."""
        return self._session_id

    @property
    def state(self) -> SessionState:
        """Get the current cycle state."""
        return self._machine.state

    @property
    def error(self) -> ErrorRecord | None:
        """Get the error recorded for the current cycle, if any."""
        return self._error

    @property
    def head_metadata(self) -> ResponseMetadata | None:
        """Get metadata from the cycle's probe."""
        return self._head_metadata

    @property
    def body_metadata(self) -> ResponseMetadata | None:
        """Get metadata from the cycle's GET/POST request."""
        return self._body_metadata

    @property
    def body(self) -> bytes | None:
        """Get the body of a completed cycle."""
        return self._body

    @property
    def request_config(self) -> RequestConfig:
        """Get the request settings."""
        return self._request_config

    @property
    def policy(self) -> PolicyConfig:
        """Get the acceptance policy."""
        return self._policy

    @property
    def accept_header(self) -> str:
        """Get the ``Accept`` value sent with body requests."""
        return self._resolver.compute_accept_header(self._policy)

    # Request cycle

    def probe(self, url: str) -> ResponseMetadata:
        """Start a new cycle with a HEAD request.

        HTTP status alone never fails a probe; only transport failures do.

        Args:
            url: Resource URL.

        Returns:
            Probe metadata.

        Raises:
            CookieJarNotWritableError: If the cookie jar cannot be written.
        """
        self._begin_cycle()
        return self._issue_probe(url)

    def get(self, url: str) -> bytes | None:
        """Download a resource, probing first unless already probed.

        Args:
            url: Resource URL.

        Returns:
            Body bytes, or None if the cycle failed (see ``error``).
        """
        return self.fetch_body(url, "GET")

    def post(
        self,
        url: str,
        form_fields: Mapping[str, Any] | None = None,
        *,
        content: bytes | str | None = None,
        content_type: str | None = None,
    ) -> bytes | None:
        """Send a POST after a fresh probe.

        Args:
            url: Resource URL.
            form_fields: Fields sent URL-encoded as a form.
            content: Raw payload, used instead of ``form_fields``.
            content_type: Content-Type for a raw payload.

        Returns:
            Body bytes, or None if the cycle failed (see ``error``).

        Raises:
            ValueError: If both ``form_fields`` and ``content`` are given.
        """
        if form_fields is not None and content is not None:
            msg = "Pass either form_fields or content, not both"
            raise ValueError(msg)

        if content is not None:
            payload = content.encode("utf-8") if isinstance(content, str) else content
            return self.fetch_body(url, "POST", payload, content_type=content_type)

        payload = urlencode(form_fields or {}, doseq=True).encode("ascii")
        return self.fetch_body(url, "POST", payload, content_type=FORM_CONTENT_TYPE)

    def fetch_body(
        self,
        url: str,
        method: str = "GET",
        payload: bytes | None = None,
        *,
        content_type: str | None = None,
    ) -> bytes | None:
        """Validate the probe and issue the body-bearing request.

        GET reuses a probe of the same URL made in the current cycle and
        probes otherwise. POST always probes again.

        Args:
            url: Resource URL.
            method: ``GET`` or ``POST``.
            payload: Request body for POST.
            content_type: Content-Type of ``payload``.

        Returns:
            Body bytes, or None if the cycle failed (see ``error``).

        Raises:
            ValueError: If ``method`` is not GET or POST.
        """
        method = method.upper()
        if method not in BODY_METHODS:
            msg = f"Unsupported body method: {method}"
            raise ValueError(msg)

        if method == "POST" or not self._has_probe_for(url):
            self.probe(url)
        head = self._head_metadata
        if self._machine.state is not SessionState.HEAD_ISSUED or head is None:
            return None

        record = self._resolver.validate(head, self._policy)
        if record is not None:
            self._fail(record)
            return None
        self._machine.to_validated()

        config = self._body_request_config(content_type)
        sink = BodySink(self._policy.max_body_bytes)
        self._machine.to_body_issued()
        result = self._execute(config, method, url, payload, sink)
        self._body_metadata = result.metadata

        if sink.overflowed:
            self._metrics.record_abort()
            overflow = self._resolver.streamed_overflow(
                sink.bytes_received, self._policy
            )
            self._fail(overflow)
            return None

        failure = result.transport_error
        if failure is not None:
            self._fail(TransportError.from_code(failure.code, failure.message))
            return None

        self._body = sink.getvalue()
        self._machine.to_complete()
        self._log.info(
            "body_complete",
            method=method,
            url=redact_url_credentials(result.metadata.resolved_url),
            status_code=result.metadata.http_status,
            content_type=result.metadata.mime_type,
            bytes=len(self._body),
            duration_ms=round(result.metadata.duration_ms, 2),
        )
        return self._body

    def reset(self) -> None:
        """Return to IDLE, clearing the error, metadata and body.

        Request settings and policy are kept.
        """
        self._ensure_not_in_flight()
        self._begin_cycle()
        self._log.debug("session_reset")

    # Charset of the completed body

    def header_charset(self) -> str | None:
        """Get the charset declared in the body response's Content-Type."""
        metadata = self._require_complete()
        return header_charset(metadata.content_type)

    def content_charset(self) -> str | None:
        """Get the charset the document declares in its own markup."""
        metadata = self._require_complete()
        return self._charset_detector.detect(self._body or b"", metadata.resolved_url)

    def charset(self) -> str | None:
        """Get the header charset, falling back to the document's own."""
        return self.header_charset() or self.content_charset()

    # Configuration

    def set_accepted_tags(self, *selectors: str) -> None:
        """Replace the accepted selectors; no arguments accepts nothing."""
        self._update_policy(accepted_tags=frozenset(selectors))

    def add_accepted_tags(self, *selectors: str) -> None:
        """Add selectors to the accepted set."""
        self._update_policy(accepted_tags=self._policy.accepted_tags | set(selectors))

    def set_max_body_bytes(self, max_body_bytes: int) -> None:
        """Set the body size ceiling."""
        self._update_policy(max_body_bytes=max_body_bytes)

    def set_accepted_status_codes(self, codes: Iterable[int]) -> None:
        """Replace the accepted HTTP status codes."""
        self._update_policy(accepted_status_codes=frozenset(codes))

    def set_header(self, name: str, value: str) -> None:
        """Set one request header."""
        self.set_headers({name: value})

    def set_headers(self, headers: Mapping[str, str]) -> None:
        """Set several request headers, keeping the others."""
        merged = dict(self._request_config.headers)
        merged.update(headers)
        self._update_request(headers=merged)

    def set_auth(self, username: str, password: str) -> None:
        """Use HTTP basic authentication."""
        self._update_request(
            auth=AuthCredentials(username=username, password=password)
        )

    def clear_auth(self) -> None:
        """Stop sending credentials."""
        self._update_request(auth=None)

    def set_timeouts(
        self,
        timeout_ms: int | None = None,
        connect_timeout_ms: int | None = None,
    ) -> None:
        """Set total and/or connect timeouts in milliseconds."""
        changes: dict[str, Any] = {}
        if timeout_ms is not None:
            changes["timeout_ms"] = timeout_ms
        if connect_timeout_ms is not None:
            changes["connect_timeout_ms"] = connect_timeout_ms
        self._update_request(**changes)

    def set_max_redirects(self, max_redirects: int) -> None:
        """Set the redirect cap."""
        self._update_request(max_redirects=max_redirects)

    def set_user_agent(self, user_agent: str) -> None:
        """Set the User-Agent header value."""
        self._update_request(user_agent=user_agent)

    def set_tls_verify(self, verify: bool) -> None:  # noqa: FBT001
        """Enable or disable TLS certificate verification."""
        self._update_request(tls_verify=verify)

    def set_cookie_jar_path(self, path: Path | str | None) -> None:
        """Use a cookie file, verifying it is writable right away.

        Raises:
            CookieJarNotWritableError: If the path cannot be written.
        """
        self._update_request(cookie_jar_path=Path(path) if path is not None else None)
        self._verify_cookie_jar()

    def configure(self, **fields: Any) -> None:
        """Update request and policy fields by name.

        Raises:
            TypeError: If a field belongs to neither model.
        """
        request_fields = {
            k: v for k, v in fields.items() if k in RequestConfig.model_fields
        }
        policy_fields = {
            k: v for k, v in fields.items() if k in PolicyConfig.model_fields
        }
        unknown = set(fields) - set(request_fields) - set(policy_fields)
        if unknown:
            msg = f"Unknown configuration fields: {', '.join(sorted(unknown))}"
            raise TypeError(msg)
        if request_fields:
            self._update_request(**request_fields)
        if policy_fields:
            self._update_policy(**policy_fields)
        if "cookie_jar_path" in request_fields:
            self._verify_cookie_jar()

    # Internals

    def _begin_cycle(self) -> None:
        self._machine.restart()
        self._error = None
        self._head_metadata = None
        self._head_url = None
        self._body_metadata = None
        self._body = None

    def _has_probe_for(self, url: str) -> bool:
        return self._machine.state is SessionState.HEAD_ISSUED and self._head_url == url

    def _issue_probe(self, url: str) -> ResponseMetadata:
        self._verify_cookie_jar()
        config = self._request_config.with_headers({"Accept": PROBE_ACCEPT})
        result = self._execute(config, "HEAD", url)
        metadata = result.metadata
        self._head_metadata = metadata
        self._head_url = url

        failure = result.transport_error
        if failure is not None:
            self._fail(TransportError.from_code(failure.code, failure.message))
        else:
            self._machine.to_head_issued()
            self._log.info(
                "probe_complete",
                url=redact_url_credentials(metadata.resolved_url),
                status_code=metadata.http_status,
                content_type=metadata.mime_type,
                declared_length=metadata.declared_content_length,
                duration_ms=round(metadata.duration_ms, 2),
            )
        return metadata

    def _body_request_config(self, content_type: str | None) -> RequestConfig:
        headers = dict(self._request_config.headers)
        accept = self.accept_header
        if accept:
            headers["Accept"] = accept
        else:
            headers.pop("Accept", None)
        if content_type:
            headers["Content-Type"] = content_type
        return self._request_config.model_copy(update={"headers": headers})

    def _execute(
        self,
        config: RequestConfig,
        method: str,
        url: str,
        payload: bytes | None = None,
        sink: ChunkCallback | None = None,
    ) -> TransportResult:
        self._in_flight = True
        start_ns = time.perf_counter_ns()
        try:
            result = self._transport.execute(config, method, url, payload, sink)
        finally:
            self._in_flight = False
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_request(
            method,
            result.metadata.http_status,
            result.metadata.observed_bytes_read,
            duration_ms,
        )
        return result

    def _fail(self, record: ErrorRecord) -> None:
        self._error = record
        self._machine.to_failed()
        self._metrics.record_failure(record.kind)

        if isinstance(record, TransportError):
            self._log.warning(
                "transport_error",
                code=record.code,
                name=record.name,
                message=record.message,
            )
        elif isinstance(record, SizeLimitError):
            self._log.warning(
                "size_limit_exceeded",
                variant=record.variant.value,
                limit_bytes=record.limit_bytes,
                actual_bytes=record.actual_bytes,
            )
        else:
            self._log.info(
                "policy_rejected",
                error_kind=record.kind.value,
                message=record.message,
            )

    def _require_complete(self) -> ResponseMetadata:
        if not self._machine.is_complete() or self._body_metadata is None:
            raise SessionStateError(self._machine.state, SessionState.COMPLETE)
        return self._body_metadata

    def _ensure_not_in_flight(self) -> None:
        if self._in_flight:
            msg = "Session cannot be changed while a request is in flight"
            raise SessionBusyError(msg)

    def _update_request(self, **changes: Any) -> None:
        self._ensure_not_in_flight()
        data = self._request_config.model_dump()
        data.update(changes)
        self._request_config = RequestConfig.model_validate(data)

    def _update_policy(self, **changes: Any) -> None:
        self._ensure_not_in_flight()
        data = self._policy.model_dump()
        data.update(changes)
        self._policy = self._resolver.build_policy(data)

    def _verify_cookie_jar(self) -> None:
        path = self._request_config.cookie_jar_path
        if path is not None:
            CookieJarStore(path).verify_writable()
