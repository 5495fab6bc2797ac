"""Application settings loading."""

from .app import AppSettings, get_settings, reset_settings_cache


__all__ = ["AppSettings", "get_settings", "reset_settings_cache"]
