"""Domain entities."""
from .participant import Participant
from .team import Team
from .match import Match
from .ladder_entry import LadderEntry
from .crawl_state import CrawlState

__all__ = [
    'Participant',
    'Team',
    'Match',
    'LadderEntry',
    'CrawlState',
]
