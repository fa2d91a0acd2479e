"""HTTP constants for the fetch layer.

Centralizes defaults shared by the request config, policy and transport.
"""

# HTTP status code bounds
HTTP_STATUS_OK = 200
HTTP_STATUS_MIN = 100
HTTP_STATUS_MAX = 599

# Response Size Limits
DEFAULT_MAX_BODY_BYTES = 1024 * 1024  # 1 MiB

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

# Timeouts (milliseconds)
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_CONNECT_TIMEOUT_MS = 5000

DEFAULT_MAX_REDIRECTS = 10

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:128.0) "
    "Gecko/20100101 Firefox/128.0"
)

DEFAULT_HEADERS: tuple[tuple[str, str], ...] = (
    ("Connection", "keep-alive"),
    ("Accept-Language", "en-us,en;q=0.5"),
)

DEFAULT_ACCEPT_ENCODING = "gzip, deflate"

# Accept header sent with every probe; mime filtering happens in validate()
PROBE_ACCEPT = "*/*"

DEFAULT_ACCEPTED_TAGS = frozenset({"webpages"})

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Selector accepted by every registry entry
UNIVERSAL_TAG = "all"
