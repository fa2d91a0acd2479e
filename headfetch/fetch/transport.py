"""Transport collaborator: executes one HTTP request over httpx."""

import socket
import ssl
import time
from collections.abc import Callable
from http.cookiejar import MozillaCookieJar
from typing import Protocol, runtime_checkable

import httpx
import structlog

from headfetch.fetch.config import RequestConfig
from headfetch.fetch.constants import DEFAULT_ACCEPT_ENCODING, DEFAULT_CHUNK_SIZE
from headfetch.fetch.cookies import CookieJarStore
from headfetch.fetch.errors import TransportErrorCode
from headfetch.fetch.models import (
    ChunkDecision,
    ResponseMetadata,
    TransportFailure,
    TransportResult,
)
from headfetch.fetch.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()

ChunkCallback = Callable[[bytes], ChunkDecision]


@runtime_checkable
class Transport(Protocol):
    """Executes a single request and reports structured metadata.

    Implementations must not raise for network failures; they report them
    through ``ResponseMetadata.transport_error``. When ``on_body_chunk``
    returns ABORT the transfer must stop before the next chunk.
    """

    def execute(
        self,
        config: RequestConfig,
        method: str,
        url: str,
        body: bytes | None = None,
        on_body_chunk: ChunkCallback | None = None,
    ) -> TransportResult:
        """Execute a request.

        Args:
            config: Request settings (headers, timeouts, auth, cookies).
            method: HTTP method.
            url: Target URL.
            body: Optional request payload.
            on_body_chunk: Sink receiving response body chunks.

        Returns:
            TransportResult with metadata and the abort flag.
        """
        ...


def _iter_causes(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def classify_exception(exc: Exception) -> TransportFailure:
    """Map an httpx exception to a transport failure code.

    Args:
        exc: Exception raised by httpx.

    Returns:
        TransportFailure with a TransportErrorCode value.
    """
    message = str(exc) or type(exc).__name__

    if isinstance(exc, httpx.InvalidURL):
        code = TransportErrorCode.URL_MALFORMAT
    elif isinstance(exc, httpx.TooManyRedirects):
        code = TransportErrorCode.TOO_MANY_REDIRECTS
    elif isinstance(exc, httpx.TimeoutException):
        code = TransportErrorCode.OPERATION_TIMEDOUT
    elif isinstance(exc, httpx.UnsupportedProtocol):
        code = TransportErrorCode.UNSUPPORTED_PROTOCOL
    elif isinstance(exc, httpx.ProxyError):
        code = TransportErrorCode.COULDNT_RESOLVE_PROXY
    elif isinstance(exc, httpx.ConnectError):
        code = TransportErrorCode.COULDNT_CONNECT
        for cause in _iter_causes(exc):
            if isinstance(cause, ssl.SSLCertVerificationError):
                code = TransportErrorCode.PEER_FAILED_VERIFICATION
                break
            if isinstance(cause, ssl.SSLError):
                code = TransportErrorCode.SSL_CONNECT_ERROR
                break
            if isinstance(cause, socket.gaierror):
                code = TransportErrorCode.COULDNT_RESOLVE_HOST
                break
    elif isinstance(exc, httpx.DecodingError):
        code = TransportErrorCode.BAD_CONTENT_ENCODING
    elif isinstance(exc, httpx.RemoteProtocolError):
        code = TransportErrorCode.GOT_NOTHING
    elif isinstance(exc, httpx.WriteError):
        code = TransportErrorCode.SEND_ERROR
    elif isinstance(exc, httpx.ReadError):
        code = TransportErrorCode.RECV_ERROR
    else:
        code = TransportErrorCode.UNKNOWN

    return TransportFailure(code=int(code), message=message)


def _parse_content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


class HttpxTransport:
    """Transport backed by ``httpx.Client``.

    A fresh client is opened per request, so no connection state carries
    over between a probe and the body request.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            chunk_size: Bytes requested per streamed read.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
        """
        self._chunk_size = chunk_size
        self._transport = transport
        self._log = logger.bind(component="transport")

    def execute(
        self,
        config: RequestConfig,
        method: str,
        url: str,
        body: bytes | None = None,
        on_body_chunk: ChunkCallback | None = None,
    ) -> TransportResult:
        """Execute one request, streaming the body into ``on_body_chunk``.

        Args:
            config: Request settings.
            method: HTTP method.
            url: Target URL.
            body: Optional request payload.
            on_body_chunk: Sink receiving response body chunks.

        Returns:
            TransportResult; failures are reported, never raised.
        """
        start_ns = time.perf_counter_ns()
        deadline = time.monotonic() + config.timeout_seconds
        headers = self._build_headers(config)
        log = self._log.bind(
            method=method,
            url=redact_url_credentials(url),
            headers=redact_headers(headers),
        )

        jar_store: CookieJarStore | None = None
        jar: MozillaCookieJar | None = None
        if config.cookie_jar_path is not None:
            jar_store = CookieJarStore(config.cookie_jar_path)
            jar = jar_store.load()

        response: httpx.Response | None = None
        failure: TransportFailure | None = None
        bytes_read = 0
        aborted = False

        try:
            with self._open_client(config, jar) as client, client.stream(
                method, url, headers=headers, content=body
            ) as response:
                if on_body_chunk is not None and method.upper() != "HEAD":
                    for chunk in response.iter_bytes(chunk_size=self._chunk_size):
                        if time.monotonic() > deadline:
                            failure = TransportFailure(
                                code=int(TransportErrorCode.OPERATION_TIMEDOUT),
                                message=(
                                    f"Operation timed out after {config.timeout_ms} "
                                    f"milliseconds with {bytes_read} bytes received"
                                ),
                            )
                            break
                        bytes_read += len(chunk)
                        if on_body_chunk(chunk) is ChunkDecision.ABORT:
                            aborted = True
                            break
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            failure = classify_exception(e)
            log.debug("transport_exception", error_type=type(e).__name__)

        if jar_store is not None and jar is not None:
            try:
                jar_store.save(jar)
            except OSError as e:
                log.warning(
                    "cookie_jar_save_failed",
                    path=str(jar_store.path),
                    error=str(e),
                )

        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        metadata = self._build_metadata(
            method=method,
            url=url,
            response=response,
            bytes_read=bytes_read,
            failure=failure,
            duration_ms=duration_ms,
        )
        log.debug(
            "transport_complete",
            status_code=metadata.http_status,
            bytes=bytes_read,
            aborted=aborted,
            error_code=failure.code if failure else None,
            duration_ms=round(duration_ms, 2),
        )
        return TransportResult(metadata=metadata, aborted=aborted)

    def _open_client(
        self,
        config: RequestConfig,
        jar: MozillaCookieJar | None,
    ) -> httpx.Client:
        auth = (
            httpx.BasicAuth(config.auth.username, config.auth.password)
            if config.auth
            else None
        )
        return httpx.Client(
            timeout=httpx.Timeout(
                config.timeout_seconds, connect=config.connect_timeout_seconds
            ),
            follow_redirects=config.follow_redirects,
            max_redirects=config.max_redirects,
            verify=config.tls_verify,
            auth=auth,
            cookies=jar,
            transport=self._transport,
        )

    def _build_headers(self, config: RequestConfig) -> dict[str, str]:
        """Build request headers.

        Args:
            config: Request settings.

        Returns:
            Complete headers dictionary.
        """
        headers: dict[str, str] = {
            "User-Agent": config.user_agent,
            "Accept-Encoding": DEFAULT_ACCEPT_ENCODING,
        }
        headers.update(config.headers)
        return headers

    def _build_metadata(
        self,
        method: str,
        url: str,
        response: httpx.Response | None,
        bytes_read: int,
        failure: TransportFailure | None,
        duration_ms: float,
    ) -> ResponseMetadata:
        if response is None:
            return ResponseMetadata(
                method=method,
                http_status=0,
                resolved_url=url,
                observed_bytes_read=bytes_read,
                transport_error=failure,
                duration_ms=duration_ms,
            )
        return ResponseMetadata(
            method=method,
            http_status=response.status_code,
            resolved_url=str(response.url),
            content_type=response.headers.get("content-type", ""),
            declared_content_length=_parse_content_length(
                response.headers.get("content-length")
            ),
            observed_bytes_read=bytes_read,
            transport_error=failure,
            duration_ms=duration_ms,
        )
