"""Buffet back office: inventory-consistency core."""

__version__ = "1.0.0"
