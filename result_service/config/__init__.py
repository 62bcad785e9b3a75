"""Configuration for the result service."""

from result_service.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
