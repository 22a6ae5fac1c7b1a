"""Domain enumerations."""
from .region import Region
from .queue_type import QueueType
from .ladder_tier import LadderTier
from .role import Role

__all__ = [
    'Region',
    'QueueType',
    'LadderTier',
    'Role',
]
