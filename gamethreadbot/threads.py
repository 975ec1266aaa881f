from __future__ import annotations

from datetime import tzinfo
from typing import Any, Optional, Set

import discord

from .config import logger
from .formatting import fmt_game_details, fmt_thread_notification, thread_title
from .models import Game, Participant, Sport
from .schedule import ScheduleStore


# Minutes; Discord's one-day auto-archive
THREAD_AUTO_ARCHIVE_MINUTES = 1440


def find_opponent(game: Game) -> Optional[Participant]:
    """The single participant that is not the organization's team.

    Returns None unless exactly one participant matched the organization
    and exactly one other participant remains.
    """
    if game.organization is None:
        return None
    others = [p for p in game.participants if not p.is_organization]
    return others[0] if len(others) == 1 else None


class ThreadDispatcher:
    """Creates at most one discussion thread per game on game day."""

    def __init__(
        self,
        client: Any,
        store: ScheduleStore,
        threads_channel_id: int,
        general_channel_id: int,
        team_name: str,
        tz: tzinfo,
    ):
        self.client = client
        self.store = store
        self.threads_channel_id = threads_channel_id
        self.general_channel_id = general_channel_id
        self.team_name = team_name
        self.tz = tz
        # Sports with a creation currently between check and create
        self._in_flight: Set[Sport] = set()

    async def check_and_create_today_threads(self) -> int:
        todays_games = self.store.get_todays_games()
        threads_created = 0

        for game in todays_games:
            try:
                if await self.create_game_thread(game, game.sport):
                    threads_created += 1
            except Exception as e:
                logger.error(f"Error creating thread for {game.sport.value} game {game.id}: {e}", exc_info=True)

        logger.info(f"Created {threads_created} thread(s) for today's games")
        return threads_created

    async def create_game_thread(self, game: Game, sport: Sport) -> bool:
        opponent = find_opponent(game)
        if opponent is None:
            logger.error(f"Could not find opponent for {sport.value} game {game.id} ({game.name or 'unnamed'})")
            return False

        threads_channel = self.client.get_channel(self.threads_channel_id)
        general_channel = self.client.get_channel(self.general_channel_id)
        if threads_channel is None or general_channel is None:
            logger.error(
                f"Could not find required channels "
                f"(threads={self.threads_channel_id} found={threads_channel is not None}, "
                f"general={self.general_channel_id} found={general_channel is not None})"
            )
            return False

        if sport in self._in_flight:
            logger.info(f"Thread creation for {sport.value} already in progress, skipping game {game.id}")
            return False

        self._in_flight.add(sport)
        try:
            return await self._create(game, sport, opponent, threads_channel, general_channel)
        finally:
            self._in_flight.discard(sport)

    async def _create(self, game: Game, sport: Sport, opponent: Participant, threads_channel, general_channel) -> bool:
        already_numbered = self.store.has_game_number(sport, game.id)
        game_number = self.store.assign_game_number(sport, game.id)
        name = thread_title(sport, game_number, opponent.display_name)

        if await self.thread_exists(threads_channel, name):
            logger.info(f"Thread already exists: {name}")
            if not already_numbered:
                # Threaded before this session; count it once so later games number correctly
                self.store.increment_game_counter(sport)
                self.store.record_game_number(sport, game.id, game_number)
            return False

        try:
            thread = await threads_channel.create_thread(
                name=name,
                auto_archive_duration=THREAD_AUTO_ARCHIVE_MINUTES,
                type=discord.ChannelType.public_thread,
                reason=f"Automated game thread for {opponent.display_name} game",
            )
        except discord.HTTPException as e:
            logger.error(f"❌ Failed to create thread {name}: {e}")
            return False

        if not already_numbered:
            self.store.increment_game_counter(sport)
            self.store.record_game_number(sport, game.id, game_number)
        logger.info(f"✅ Created thread: {name}")

        try:
            await thread.send(content=fmt_game_details(game, opponent, self.team_name, self.tz))
        except Exception as e:
            logger.error(f"Thread {name} created but posting game details failed: {e}")

        try:
            await general_channel.send(content=fmt_thread_notification(sport, name, thread.mention))
        except Exception as e:
            logger.error(f"Thread {name} created but general channel notification failed: {e}")

        return True

    async def thread_exists(self, channel, name: str) -> bool:
        """Exact-name match among the channel's active and archived threads."""
        try:
            active = await channel.guild.active_threads()
            if any(t.parent_id == channel.id and t.name == name for t in active):
                return True
            async for thread in channel.archived_threads(limit=None):
                if thread.name == name:
                    return True
        except discord.HTTPException as e:
            logger.error(f"Error checking if thread exists: {e}")
        return False
