from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import List, Optional


class Sport(Enum):
    """Monitored sports. Football is the primary sport."""
    FOOTBALL = "football"
    MENS_BASKETBALL = "mens-basketball"
    WOMENS_BASKETBALL = "womens-basketball"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def espn_path(self) -> str:
        return _ESPN_PATHS[self]

    @property
    def emoji(self) -> str:
        return _EMOJI[self]

    @property
    def is_primary(self) -> bool:
        return self is Sport.FOOTBALL


_DISPLAY_NAMES = {
    Sport.FOOTBALL: "Football",
    Sport.MENS_BASKETBALL: "Men's Basketball",
    Sport.WOMENS_BASKETBALL: "Women's Basketball",
}

_ESPN_PATHS = {
    Sport.FOOTBALL: "football/college-football",
    Sport.MENS_BASKETBALL: "basketball/mens-college-basketball",
    Sport.WOMENS_BASKETBALL: "basketball/womens-college-basketball",
}

_EMOJI = {
    Sport.FOOTBALL: "🏈",
    Sport.MENS_BASKETBALL: "🏀",
    Sport.WOMENS_BASKETBALL: "🏀",
}


@dataclass(frozen=True)
class TeamIdentity:
    """How the organization's team is recognised among a game's competitors."""
    team_id: str
    name: str
    abbreviation: str

    def matches(self, team_id: str, display_name: str, abbreviation: str) -> bool:
        if self.team_id and team_id == self.team_id:
            return True
        if self.name and self.name.lower() in (display_name or "").lower():
            return True
        return bool(self.abbreviation) and (abbreviation or "").upper() == self.abbreviation.upper()


@dataclass(frozen=True)
class Participant:
    display_name: str
    abbreviation: str = ""
    team_id: str = ""
    home_away: str = ""
    is_organization: bool = False


@dataclass
class Game:
    id: str
    sport: Sport
    date: datetime
    name: str = ""
    participants: List[Participant] = field(default_factory=list)

    @property
    def organization(self) -> Optional[Participant]:
        """The organization's participant, or None when zero or several match."""
        matches = [p for p in self.participants if p.is_organization]
        return matches[0] if len(matches) == 1 else None

    @property
    def is_home(self) -> bool:
        org = self.organization
        return org is not None and org.home_away == "home"

    def local_date(self, tz: tzinfo) -> date:
        return self.date.astimezone(tz).date()


def game_job_key(sport: Sport, game_id: str) -> str:
    return f"{sport.value}_{game_id}"


def parse_iso_datetime(value: str) -> datetime:
    """Parse ESPN timestamps such as '2025-08-30T16:00Z' into aware datetimes."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        # ESPN dates are UTC even when the offset is omitted
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
