"""Byte-counting sink for streamed response bodies."""

from headfetch.fetch.models import ChunkDecision


class BodySink:
    """Accumulates streamed chunks and stops the transfer past a byte limit.

    The transport calls the sink once per chunk from inside its transfer
    loop. Each call appends then compares the running length against the
    limit, so the chunk that crosses the limit is buffered and nothing after
    it is.
    """

    def __init__(self, max_bytes: int) -> None:
        """Initialize the sink.

        Args:
            max_bytes: Largest body size accepted.
        """
        self._max_bytes = max_bytes
        self._buffer = bytearray()
        self._overflowed = False
        self._chunks = 0

    def __call__(self, chunk: bytes) -> ChunkDecision:
        """Receive one chunk.

        Args:
            chunk: Bytes delivered by the transport.

        Returns:
            ABORT once the buffered length exceeds the limit.
        """
        if self._overflowed:
            return ChunkDecision.ABORT
        self._buffer += chunk
        self._chunks += 1
        if len(self._buffer) > self._max_bytes:
            self._overflowed = True
            return ChunkDecision.ABORT
        return ChunkDecision.CONTINUE

    @property
    def overflowed(self) -> bool:
        """Whether the limit was crossed."""
        return self._overflowed

    @property
    def bytes_received(self) -> int:
        """Number of bytes buffered so far."""
        return len(self._buffer)

    @property
    def chunk_count(self) -> int:
        """Number of chunks accepted."""
        return self._chunks

    def getvalue(self) -> bytes:
        """Get the buffered body."""
        return bytes(self._buffer)
