"""Environment-driven settings."""

from headfetch.settings.app import AppSettings, get_settings


__all__ = ["AppSettings", "get_settings"]
