"""Application settings powered by Pydantic BaseSettings."""

import logging
from pathlib import Path
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from headfetch.fetch.config import PolicyConfig, RequestConfig
from headfetch.fetch.constants import (
    DEFAULT_ACCEPTED_TAGS,
    DEFAULT_CONNECT_TIMEOUT_MS,
    DEFAULT_MAX_BODY_BYTES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_MS,
    DEFAULT_USER_AGENT,
    HTTP_STATUS_OK,
)


class AppSettings(BaseSettings):
    """Environment defaults for fetch sessions (``HEADFETCH_*`` variables)."""

    model_config = SettingsConfigDict(
        env_prefix="HEADFETCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_agent: str = DEFAULT_USER_AGENT
    timeout_ms: Annotated[int, Field(ge=1)] = DEFAULT_TIMEOUT_MS
    connect_timeout_ms: Annotated[int, Field(ge=1)] = DEFAULT_CONNECT_TIMEOUT_MS
    max_redirects: Annotated[int, Field(ge=0)] = DEFAULT_MAX_REDIRECTS
    max_body_bytes: Annotated[int, Field(ge=0)] = DEFAULT_MAX_BODY_BYTES
    accepted_tags: list[str] = Field(
        default_factory=lambda: sorted(DEFAULT_ACCEPTED_TAGS)
    )
    accepted_status_codes: list[int] = Field(default_factory=lambda: [HTTP_STATUS_OK])
    cookie_jar_path: Path | None = None
    tls_verify: bool = True
    log_level: str = "INFO"
    log_json: bool = True

    def request_config(self) -> RequestConfig:
        """Build the request config described by these settings."""
        return RequestConfig(
            user_agent=self.user_agent,
            timeout_ms=self.timeout_ms,
            connect_timeout_ms=self.connect_timeout_ms,
            max_redirects=self.max_redirects,
            cookie_jar_path=self.cookie_jar_path,
            tls_verify=self.tls_verify,
        )

    def policy_config(self) -> PolicyConfig:
        """Build the acceptance policy described by these settings."""
        return PolicyConfig(
            accepted_tags=frozenset(self.accepted_tags),
            max_body_bytes=self.max_body_bytes,
            accepted_status_codes=frozenset(self.accepted_status_codes),
        )

    @property
    def log_level_value(self) -> int:
        """Numeric logging level (falls back to INFO for unknown names)."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
