from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .config import logger
from .jobs import Action, JobScheduler, game_day_fire_time
from .models import Game, Participant, Sport, game_job_key
from .schedule import ScheduleStore
from .threads import ThreadDispatcher, find_opponent


@dataclass
class BotStatus:
    counters: Dict[Sport, int]
    todays_games: List[Game]
    upcoming: Dict[Sport, List[Game]]
    opponents: Dict[str, Optional[Participant]] = field(default_factory=dict)
    next_weekly_run: Optional[datetime] = None
    job_count: int = 0


class Orchestrator:
    """Ties the weekly refresh, job reconciliation and manual triggers together."""

    def __init__(
        self,
        store: ScheduleStore,
        scheduler: JobScheduler,
        dispatcher: ThreadDispatcher,
        weekly_cron: str,
        timezone_name: str,
        game_day_hour: int = 5,
    ):
        self.store = store
        self.scheduler = scheduler
        self.dispatcher = dispatcher
        self.weekly_cron = weekly_cron
        self.timezone_name = timezone_name
        self.game_day_hour = game_day_hour

    @property
    def sports(self) -> Tuple[Sport, ...]:
        return self.store.sports

    def fire_time_for(self, game: Game) -> datetime:
        return game_day_fire_time(game.local_date(self.store.tz), self.store.tz, self.game_day_hour)

    def _game_day_action(self) -> Action:
        return self.dispatcher.check_and_create_today_threads

    async def refresh_all_schedules(self) -> Dict[Sport, int]:
        """Refresh every sport and reconcile game-day jobs against the result.

        Returns the number of games fetched per sport.
        """
        desired: Dict[str, Tuple[datetime, Action]] = {}
        fetched: Dict[Sport, int] = {}
        action = self._game_day_action()

        for sport in self.sports:
            try:
                games = await self.store.refresh(sport)
                fetched[sport] = len(games)
                today = self.store.now().date()
                for game in games:
                    if game.local_date(self.store.tz) >= today:
                        desired[game_job_key(sport, game.id)] = (self.fire_time_for(game), action)
            except Exception as e:
                logger.error(f"Error refreshing {sport.value} schedule: {e}", exc_info=True)
                fetched[sport] = 0

        added, removed = self.scheduler.reconcile(desired)
        logger.info(
            f"Schedule refresh complete: {len(desired)} game day job(s) wanted, "
            f"{len(added)} added, {len(removed)} removed"
        )
        return fetched

    def start_scheduled_jobs(self) -> bool:
        started = self.scheduler.register_weekly(self.weekly_cron, self.timezone_name, self._weekly_refresh)
        if started:
            logger.info("Scheduled jobs started")
        return started

    def stop_scheduled_jobs(self) -> None:
        self.scheduler.stop_all()

    async def _weekly_refresh(self) -> None:
        logger.info("Running weekly schedule refresh...")
        await self.refresh_all_schedules()

    def get_todays_games(self) -> List[Game]:
        return self.store.get_todays_games()

    def get_game_counter(self, sport: Sport) -> int:
        return self.store.get_game_counter(sport)

    async def check_today(self) -> Tuple[int, int]:
        """Backfill missing game-day jobs for today's games, then create threads.

        Returns (threads_created, jobs_scheduled).
        """
        jobs_scheduled = 0
        for game in self.get_todays_games():
            key = game_job_key(game.sport, game.id)
            if not self.scheduler.has_task(key):
                # The check below covers today, so a passed fire time is not replayed
                if self.scheduler.add_task(key, self.fire_time_for(game), self._game_day_action(), run_if_overdue=False):
                    jobs_scheduled += 1

        threads_created = await self.dispatcher.check_and_create_today_threads()
        return threads_created, jobs_scheduled

    def status(self, upcoming_limit: int = 3) -> BotStatus:
        todays_games = self.get_todays_games()
        upcoming = {sport: self.store.get_upcoming_games(sport, upcoming_limit) for sport in self.sports}
        opponents: Dict[str, Optional[Participant]] = {}
        for game in todays_games + [g for games in upcoming.values() for g in games]:
            opponents[game.id] = find_opponent(game)

        return BotStatus(
            counters={sport: self.get_game_counter(sport) for sport in self.sports},
            todays_games=todays_games,
            upcoming=upcoming,
            opponents=opponents,
            next_weekly_run=self.scheduler.next_weekly_run(),
            job_count=len(self.scheduler.keys()),
        )
