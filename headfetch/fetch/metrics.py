"""Metrics collection for fetch sessions."""

from dataclasses import dataclass, field
from typing import ClassVar

from headfetch.fetch.errors import ErrorKind


@dataclass
class FetchMetrics:
    """Metrics for probe and body requests.

    Singleton class that tracks request counts per method, status codes,
    bytes received, rejections per error kind and streaming aborts.
    """

    http_requests_total: dict[str, int] = field(default_factory=dict)
    http_status_total: dict[int, int] = field(default_factory=dict)
    http_failures_total: dict[str, int] = field(default_factory=dict)
    http_bytes_total: int = 0
    http_aborts_total: int = 0
    http_duration_ms_total: float = 0.0
    http_request_count: int = 0

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_request(
        self,
        method: str,
        status_code: int,
        bytes_received: int,
        duration_ms: float,
    ) -> None:
        """Record a request that reached the transport.

        Args:
            method: HTTP method.
            status_code: HTTP status code (0 if none was received).
            bytes_received: Body bytes received.
            duration_ms: Request duration in milliseconds.
        """
        self.http_requests_total[method] = self.http_requests_total.get(method, 0) + 1
        self.http_status_total[status_code] = (
            self.http_status_total.get(status_code, 0) + 1
        )
        self.http_bytes_total += bytes_received
        self.http_duration_ms_total += duration_ms
        self.http_request_count += 1

    def record_failure(self, kind: ErrorKind) -> None:
        """Record a failed request cycle.

        Args:
            kind: Kind of the recorded error.
        """
        key = kind.value
        self.http_failures_total[key] = self.http_failures_total.get(key, 0) + 1

    def record_abort(self) -> None:
        """Record a transfer stopped by the size limit."""
        self.http_aborts_total += 1

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_status_total": dict(self.http_status_total),
            "http_failures_total": dict(self.http_failures_total),
            "http_bytes_total": self.http_bytes_total,
            "http_aborts_total": self.http_aborts_total,
            "http_duration_ms_total": self.http_duration_ms_total,
            "http_request_count": self.http_request_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average request duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.http_request_count == 0:
            return 0.0
        return self.http_duration_ms_total / self.http_request_count
