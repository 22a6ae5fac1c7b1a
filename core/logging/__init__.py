"""Structured logging: bootstrap, crawl tags and formatters."""
from .config import bootstrap_logging, shutdown_logging
from .context import current_tags, tagged
from .logger import StructuredLogger, get_logger

__all__ = [
    "bootstrap_logging",
    "shutdown_logging",
    "current_tags",
    "tagged",
    "StructuredLogger",
    "get_logger",
]
