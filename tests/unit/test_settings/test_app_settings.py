"""Unit tests for environment settings."""

import logging
import os
from pathlib import Path

import pytest

from headfetch.settings.app import AppSettings, get_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without HEADFETCH_* variables or a local .env file."""
    for name in list(os.environ):
        if name.startswith("HEADFETCH_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self) -> None:
        """Test default values."""
        settings = get_settings()

        assert settings.timeout_ms == 5000
        assert settings.max_body_bytes == 1_048_576
        assert settings.accepted_tags == ["webpages"]
        assert settings.accepted_status_codes == [200]
        assert settings.tls_verify is True
        assert settings.log_level_value == logging.INFO

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test HEADFETCH_* overrides."""
        monkeypatch.setenv("HEADFETCH_TIMEOUT_MS", "1500")
        monkeypatch.setenv("HEADFETCH_ACCEPTED_TAGS", '["images", "json"]')
        monkeypatch.setenv("HEADFETCH_TLS_VERIFY", "false")
        monkeypatch.setenv("HEADFETCH_LOG_LEVEL", "debug")

        settings = AppSettings()

        assert settings.timeout_ms == 1500
        assert settings.accepted_tags == ["images", "json"]
        assert settings.tls_verify is False
        assert settings.log_level_value == logging.DEBUG

    def test_reads_dotenv(self, tmp_path: Path) -> None:
        """Test values from a .env file in the working directory."""
        (tmp_path / ".env").write_text("HEADFETCH_MAX_REDIRECTS=3\n")

        assert AppSettings().max_redirects == 3

    def test_unknown_log_level(self) -> None:
        """Test that an unknown level name falls back to INFO."""
        assert AppSettings(log_level="chatty").log_level_value == logging.INFO

    def test_builds_configs(self, tmp_path: Path) -> None:
        """Test conversion into request and policy configs."""
        settings = AppSettings(
            user_agent="bot/2",
            max_redirects=1,
            cookie_jar_path=tmp_path / "jar.txt",
            accepted_tags=["images"],
            accepted_status_codes=[200, 203],
            max_body_bytes=10,
        )

        request = settings.request_config()
        policy = settings.policy_config()

        assert request.user_agent == "bot/2"
        assert request.max_redirects == 1
        assert request.cookie_jar_path == tmp_path / "jar.txt"
        assert policy.accepted_tags == {"images"}
        assert policy.accepted_status_codes == {200, 203}
        assert policy.max_body_bytes == 10

    def test_invalid_selector_surfaces_on_policy(self) -> None:
        """Test that unknown selectors are rejected when building the policy."""
        settings = AppSettings(accepted_tags=["pictures"])

        with pytest.raises(ValueError, match="Unknown MIME selectors"):
            settings.policy_config()
