"""Environment settings for the swipefeed tools."""

from swipefeed.settings.app import AppSettings, get_settings


__all__ = ["AppSettings", "get_settings"]
