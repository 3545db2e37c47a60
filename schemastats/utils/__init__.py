"""
Utilities package for schema-stats.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from schemastats.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
