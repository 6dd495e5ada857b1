"""Configuration package."""

from .settings import JSONFormatter, Settings, get_settings

__all__ = ["Settings", "JSONFormatter", "get_settings"]
