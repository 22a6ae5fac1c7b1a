"""Role/Position enumeration."""
from enum import Enum
from typing import Optional


class Role(Enum):
    """League of Legends lane roles/positions."""

    TOP = "TOP"
    JUNGLE = "JUNGLE"
    MIDDLE = "MIDDLE"
    BOTTOM = "BOTTOM"
    UTILITY = "UTILITY"  # Support

    @property
    def short_name(self) -> str:
        short_names = {
            "TOP": "top",
            "JUNGLE": "jungle",
            "MIDDLE": "mid",
            "BOTTOM": "adc",
            "UTILITY": "support"
        }
        return short_names[self.value]

    @classmethod
    def from_string(cls, role_str: Optional[str]) -> Optional['Role']:
        """Normalize a teamPosition string; None when the game had no lane."""
        if not role_str:
            return None
        key = role_str.strip().upper()
        try:
            return cls[key]
        except KeyError:
            mappings = {
                "SUPPORT": cls.UTILITY,
                "SUP": cls.UTILITY,
                "ADC": cls.BOTTOM,
                "BOT": cls.BOTTOM,
                "MID": cls.MIDDLE,
                "JG": cls.JUNGLE,
                "JGL": cls.JUNGLE
            }
            return mappings.get(key)
