"""
Configuration management for the Solnero API.

Loads and validates settings from environment variables and the optional
.env file. Exposes a single source of truth for all service configuration.
"""

from backend_solnero.config.settings import RateLimitRule, Settings, get_settings, reset_settings  # noqa: F401

__all__ = ["RateLimitRule", "Settings", "get_settings", "reset_settings"]
