"""
Configuration management for multisend.

Loads settings from environment variables and an optional .env file. Exposes a
single source of truth for relay, retry and concurrency configuration.
"""

from multisend.config.settings import SenderConfig, get_settings  # noqa: F401

__all__ = ["SenderConfig", "get_settings"]
