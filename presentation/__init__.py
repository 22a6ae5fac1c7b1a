"""Presentation layer - User interfaces."""
from .cli import CrawlCommand, BuildCommand, StatusCommand, ResetCommand

__all__ = [
    "CrawlCommand",
    "BuildCommand",
    "StatusCommand",
    "ResetCommand",
]
