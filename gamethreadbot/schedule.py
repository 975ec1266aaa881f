from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .api import ScheduleSource
from .config import logger
from .models import Game, Sport


class ScheduleStore:
    """Per-sport cached schedules and the game counters used to number threads.

    Schedules are replaced wholesale on every refresh. "Today" is always
    derived from the cache at call time so it moves with the clock even when
    no refresh happens.
    """

    def __init__(
        self,
        source: ScheduleSource,
        tz: tzinfo,
        sports: Iterable[Sport] = tuple(Sport),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.tz = tz
        self.sports: Tuple[Sport, ...] = tuple(sports)
        self._clock = clock or (lambda: datetime.now(tz))
        self._schedules: Dict[Sport, List[Game]] = {sport: [] for sport in self.sports}
        self._counters: Dict[Sport, int] = {sport: 0 for sport in self.sports}
        # Number each game was actually threaded under, keyed by (sport, game id)
        self._game_numbers: Dict[Tuple[Sport, str], int] = {}

    def now(self) -> datetime:
        return self._clock().astimezone(self.tz)

    async def refresh(self, sport: Sport) -> List[Game]:
        try:
            games = list(await self.source.fetch(sport))
        except Exception as e:
            logger.error(f"Schedule source failed for {sport.value}, using empty schedule: {e}")
            games = []

        now = self.now()
        played = sorted((g for g in games if g.date <= now), key=lambda g: g.date)
        self._schedules[sport] = games
        self._counters[sport] = len(played)

        # Today's games already counted keep their position as the thread number
        today = now.date()
        for position, game in enumerate(played, start=1):
            if game.local_date(self.tz) == today:
                self._game_numbers.setdefault((sport, game.id), position)

        logger.info(
            f"Refreshed {sport.value} schedule: {len(games)} game(s), "
            f"current game count: {self._counters[sport]}"
        )
        return games

    def get_schedule(self, sport: Sport) -> List[Game]:
        return list(self._schedules.get(sport, []))

    def get_todays_games(self) -> List[Game]:
        today = self.now().date()
        todays: List[Game] = []
        for sport in self.sports:
            for game in self._schedules.get(sport, []):
                if game.local_date(self.tz) == today:
                    todays.append(game)
        return todays

    def get_upcoming_games(self, sport: Sport, limit: int = 3) -> List[Game]:
        """Games dated after today, soonest first."""
        today = self.now().date()
        upcoming = [g for g in self._schedules.get(sport, []) if g.local_date(self.tz) > today]
        upcoming.sort(key=lambda g: g.date)
        return upcoming[:limit]

    def get_game_counter(self, sport: Sport) -> int:
        return self._counters.get(sport, 0)

    def increment_game_counter(self, sport: Sport) -> int:
        self._counters[sport] = self._counters.get(sport, 0) + 1
        return self._counters[sport]

    def assign_game_number(self, sport: Sport, game_id: str) -> int:
        """Number to title a game's thread with.

        Reuses the number a game was already threaded under; otherwise the
        next counter value, which is only committed by increment_game_counter.
        """
        known = self._game_numbers.get((sport, game_id))
        if known is not None:
            return known
        return self.get_game_counter(sport) + 1

    def record_game_number(self, sport: Sport, game_id: str, number: int) -> None:
        self._game_numbers[(sport, game_id)] = number

    def has_game_number(self, sport: Sport, game_id: str) -> bool:
        return (sport, game_id) in self._game_numbers
