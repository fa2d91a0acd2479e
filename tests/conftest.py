"""Shared pytest fixtures."""

from collections.abc import Iterator

import pytest

from headfetch.fetch.metrics import FetchMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Iterator[None]:
    """Give every test a fresh metrics singleton."""
    FetchMetrics.reset()
    yield
    FetchMetrics.reset()
