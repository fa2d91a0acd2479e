"""Unit tests for the streaming body sink."""

from headfetch.fetch.models import ChunkDecision
from headfetch.fetch.sink import BodySink


class TestBodySink:
    """Tests for BodySink."""

    def test_accumulates_chunks(self) -> None:
        """Test that chunks under the limit are kept in order."""
        sink = BodySink(max_bytes=10)

        assert sink(b"abc") is ChunkDecision.CONTINUE
        assert sink(b"def") is ChunkDecision.CONTINUE

        assert sink.getvalue() == b"abcdef"
        assert sink.bytes_received == 6
        assert sink.chunk_count == 2
        assert sink.overflowed is False

    def test_exactly_at_limit_continues(self) -> None:
        """Test that reaching the limit exactly is allowed."""
        sink = BodySink(max_bytes=4)

        assert sink(b"abcd") is ChunkDecision.CONTINUE
        assert sink.overflowed is False

    def test_aborts_after_crossing(self) -> None:
        """Test that the crossing chunk is buffered and then abort is signalled."""
        sink = BodySink(max_bytes=5)

        assert sink(b"abc") is ChunkDecision.CONTINUE
        assert sink(b"def") is ChunkDecision.ABORT

        assert sink.overflowed is True
        assert sink.bytes_received == 6

    def test_ignores_chunks_after_abort(self) -> None:
        """Test that nothing past the crossing chunk is retained."""
        sink = BodySink(max_bytes=2)
        sink(b"abc")

        assert sink(b"more") is ChunkDecision.ABORT
        assert sink.getvalue() == b"abc"
        assert sink.chunk_count == 1

    def test_zero_limit(self) -> None:
        """Test that any byte breaches a zero limit."""
        sink = BodySink(max_bytes=0)

        assert sink(b"") is ChunkDecision.CONTINUE
        assert sink(b"x") is ChunkDecision.ABORT
