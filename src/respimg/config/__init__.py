"""Configuration module for respimg."""

from .settings import HttpSettings, Settings, get_settings

__all__ = ["HttpSettings", "Settings", "get_settings"]
