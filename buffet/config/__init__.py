"""Configuration module."""

from buffet.config.logging import configure_logging, get_logger, operation_context
from buffet.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "operation_context",
]
