"""headfetch: HTTP retrieval with a HEAD probe ahead of every body fetch."""

__version__ = "0.1.0"
