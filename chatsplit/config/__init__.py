"""Settings and swappable classification tables."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
