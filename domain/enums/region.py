"""Region enumeration for League of Legends servers."""
from enum import Enum
from typing import Optional

from ..errors import ConfigError


class Region(Enum):
    """League of Legends platform servers.

    Provides:
    - platform_route: platform host for league/summoner APIs (e.g., euw1)
    - regional_route: cluster host for match-v5 (e.g., europe)
    - friendly: short human-friendly label for CLI (e.g., eune)
    """

    # Europe
    EUW1 = "euw1"  # Europe West
    EUN1 = "eun1"  # Europe Nordic & East

    # Americas
    NA1 = "na1"    # North America
    BR1 = "br1"    # Brazil
    LA1 = "la1"    # Latin America North
    LA2 = "la2"    # Latin America South

    # Asia
    KR = "kr"      # Korea
    JP1 = "jp1"    # Japan

    # SEA & Oceania
    OC1 = "oc1"    # Oceania
    PH2 = "ph2"    # Philippines
    SG2 = "sg2"    # Singapore
    TH2 = "th2"    # Thailand
    TW2 = "tw2"    # Taiwan
    VN2 = "vn2"    # Vietnam

    # Other
    TR1 = "tr1"    # Turkey
    RU = "ru"      # Russia
    ME1 = "me1"    # Middle East

    @property
    def platform_route(self) -> str:
        return self.value

    @property
    def regional_route(self) -> str:
        """Cluster used by match-v5."""
        if self.value in ("na1", "br1", "la1", "la2"):
            return "americas"
        if self.value in ("euw1", "eun1", "tr1", "ru", "me1"):
            return "europe"
        if self.value in ("kr", "jp1"):
            return "asia"
        return "sea"

    @property
    def friendly(self) -> str:
        mapping = {
            "eun1": "eune",
            "la1": "lan",
            "la2": "las",
            "oc1": "oce",
        }
        if self.value in mapping:
            return mapping[self.value]
        code = self.value
        return code[:-1] if code[-1].isdigit() else code

    @classmethod
    def from_platform(cls, code: str) -> 'Region':
        """Resolve a platform code such as 'na1' or 'EUW1'."""
        try:
            return cls(code.strip().lower())
        except ValueError:
            raise ConfigError(f"Unknown platform {code!r}; expected one of {', '.join(r.value for r in cls)}")

    @staticmethod
    def cluster_override(value: Optional[str]) -> Optional[str]:
        """Validate an explicit cluster name, e.g. RIOT_REGION=europe."""
        if not value:
            return None
        v = value.strip().lower()
        if v not in ("americas", "europe", "asia", "sea"):
            raise ConfigError(f"Unknown regional cluster {value!r}")
        return v
