"""Presentation CLI exports."""
from .crawl_command import CrawlCommand
from .build_command import BuildCommand
from .status_command import StatusCommand
from .reset_command import ResetCommand, ResetNotConfirmedError

__all__ = [
    "CrawlCommand",
    "BuildCommand",
    "StatusCommand",
    "ResetCommand",
    "ResetNotConfirmedError",
]
