from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol

import aiohttp

from .config import Config, logger
from .http import make_session, fetch_json
from .models import Game, Participant, Sport, TeamIdentity, parse_iso_datetime


class ScheduleSource(Protocol):
    """Anything that can return the current list of games for a sport."""

    async def fetch(self, sport: Sport) -> List[Game]:
        ...


def current_season(sport: Sport, today: date, secondary_rollover_month: int = 0) -> int:
    """Season year to request from ESPN.

    Football runs Aug-Jan, so January through July still belong to the
    previous year's season. Secondary sports use the calendar year all year
    unless a rollover month is configured, in which case months from the
    rollover onward request the next year's season.
    """
    if sport.is_primary:
        return today.year if today.month >= 8 else today.year - 1
    if secondary_rollover_month and today.month >= secondary_rollover_month:
        return today.year + 1
    return today.year


def parse_participant(competitor: Dict[str, Any], identity: TeamIdentity) -> Participant:
    team = competitor.get("team") or {}
    display_name = team.get("displayName") or team.get("shortDisplayName") or team.get("name") or ""
    abbreviation = team.get("abbreviation") or ""
    team_id = str(team.get("id") or competitor.get("id") or "")
    return Participant(
        display_name=display_name,
        abbreviation=abbreviation,
        team_id=team_id,
        home_away=competitor.get("homeAway") or "",
        is_organization=identity.matches(team_id, display_name, abbreviation),
    )


def parse_game(event: Dict[str, Any], sport: Sport, identity: TeamIdentity) -> Game:
    """Build a Game from one ESPN schedule event. Raises on missing id/date."""
    competitions = event.get("competitions") or []
    competition = competitions[0] if competitions else {}
    raw_date = event.get("date") or competition.get("date")
    if not event.get("id") or not raw_date:
        raise ValueError("event is missing id or date")

    participants = [
        parse_participant(comp, identity)
        for comp in competition.get("competitors") or []
    ]
    return Game(
        id=str(event["id"]),
        sport=sport,
        date=parse_iso_datetime(raw_date),
        name=event.get("name") or "",
        participants=participants,
    )


def parse_schedule(payload: Any, sport: Sport, identity: TeamIdentity) -> List[Game]:
    if not isinstance(payload, dict):
        raise ValueError(f"unexpected schedule payload type {type(payload).__name__}")

    games: List[Game] = []
    for event in payload.get("events") or []:
        try:
            games.append(parse_game(event, sport, identity))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed {sport.value} event {event.get('id', '?') if isinstance(event, dict) else '?'}: {e}")
    games.sort(key=lambda g: g.date)
    return games


class EspnScheduleSource:
    """ESPN team schedule endpoint as a ScheduleSource."""

    def __init__(
        self,
        identity: TeamIdentity,
        base_url: str | None = None,
        timeout_secs: float | None = None,
        secondary_rollover_month: int | None = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.identity = identity
        self.base_url = base_url or Config.ESPN_BASE_URL
        self.timeout_secs = timeout_secs or Config.REQUEST_TIMEOUT_SECS
        self.secondary_rollover_month = (
            Config.SECONDARY_SEASON_ROLLOVER_MONTH if secondary_rollover_month is None else secondary_rollover_month
        )
        self._today = today or date.today

    def schedule_url(self, sport: Sport) -> str:
        return f"{self.base_url}/{sport.espn_path}/teams/{self.identity.team_id}/schedule"

    async def fetch(self, sport: Sport) -> List[Game]:
        season = current_season(sport, self._today(), self.secondary_rollover_month)
        url = self.schedule_url(sport)
        logger.info(f"Fetching {sport.value} schedule (season {season}) from: {url}")
        try:
            async with make_session(self.timeout_secs) as session:
                payload = await fetch_json(session, url, params={"season": str(season)})
            return parse_schedule(payload, sport, self.identity)
        except asyncio.TimeoutError:
            logger.error(f"Timed out fetching {sport.value} schedule after {self.timeout_secs}s")
        except (aiohttp.ClientError, PermissionError, RuntimeError, ValueError) as e:
            logger.error(f"Error fetching {sport.value} schedule: {e}")
        return []

    async def test_connection(self) -> bool:
        url = f"{self.base_url}/{Sport.FOOTBALL.espn_path}/teams/{self.identity.team_id}"
        try:
            async with make_session(5) as session:
                await fetch_json(session, url)
            return True
        except (asyncio.TimeoutError, aiohttp.ClientError, PermissionError, RuntimeError, ValueError) as e:
            logger.error(f"ESPN API connection test failed: {e}")
            return False
