"""Apex ladder tiers that can be listed in one call."""
from enum import Enum

from ..errors import ConfigError


class LadderTier(Enum):
    CHALLENGER = "challenger"
    GRANDMASTER = "grandmaster"
    MASTER = "master"

    @property
    def league_path(self) -> str:
        return f"{self.value}leagues"

    @classmethod
    def from_string(cls, value: str) -> 'LadderTier':
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigError(f"Unknown ladder tier {value!r}; expected challenger, grandmaster or master")
