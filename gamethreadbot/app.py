from __future__ import annotations

import asyncio
import contextlib
import signal
from zoneinfo import ZoneInfo

import discord
from discord import app_commands

from .api import EspnScheduleSource
from .commands import build_commands
from .config import Config, logger
from .jobs import JobScheduler
from .models import TeamIdentity
from .orchestrator import Orchestrator
from .schedule import ScheduleStore
from .threads import ThreadDispatcher


class GameThreadBot(discord.Client):
    """Discord client that owns the schedule store, job scheduler and dispatcher."""

    def __init__(self, source: EspnScheduleSource | None = None):
        super().__init__(intents=discord.Intents.default())
        self.tree = app_commands.CommandTree(self)
        self.tz = ZoneInfo(Config.TIMEZONE)
        self.source = source or EspnScheduleSource(
            TeamIdentity(Config.TEAM_ID, Config.TEAM_NAME, Config.TEAM_ABBREVIATION)
        )

        self.store = ScheduleStore(self.source, self.tz)
        self.scheduler = JobScheduler(self.tz)
        self.dispatcher = ThreadDispatcher(
            self,
            self.store,
            Config.GAME_THREADS_CHANNEL_ID,
            Config.GENERAL_CHANNEL_ID,
            Config.TEAM_NAME,
            self.tz,
        )
        self.orchestrator = Orchestrator(
            self.store,
            self.scheduler,
            self.dispatcher,
            Config.WEEKLY_REFRESH_CRON,
            Config.TIMEZONE,
            Config.GAME_DAY_HOUR,
        )
        self._started = False
        self._shutdown_task: asyncio.Task | None = None

    async def setup_hook(self) -> None:
        guild = discord.Object(id=Config.GUILD_ID)
        for command in build_commands(self.orchestrator, Config.MODERATOR_ROLE_ID):
            self.tree.add_command(command, guild=guild)
        try:
            logger.info("🔧 Syncing slash commands...")
            await self.tree.sync(guild=guild)
            logger.info("✅ Slash commands registered successfully")
        except discord.HTTPException as e:
            logger.error(f"❌ Failed to register slash commands: {e}")
            logger.warning("⚠️ Bot will continue but commands may not be available")

    async def on_ready(self) -> None:
        logger.info(f"Bot logged in as {self.user}")
        if self._started:
            # on_ready repeats after reconnects
            return
        self._started = True

        await startup_health_check(self.source)
        self.orchestrator.start_scheduled_jobs()
        await self.orchestrator.refresh_all_schedules()
        logger.info("Bot is ready and scheduled jobs are running!")

    async def close(self) -> None:
        logger.info("Shutting down bot...")
        self.orchestrator.stop_scheduled_jobs()
        await super().close()

    def request_shutdown(self) -> asyncio.Task:
        """Signal-handler entry point; repeated signals share one close task."""
        if self._shutdown_task is None or self._shutdown_task.done():
            logger.info("Shutdown signal received")
            self._shutdown_task = asyncio.get_running_loop().create_task(self.close())
        return self._shutdown_task


async def startup_health_check(source: EspnScheduleSource) -> bool:
    """Perform health check on bot startup"""
    logger.info("🏥 Running startup health check...")
    if await source.test_connection():
        logger.info("✅ ESPN API reachable")
        return True
    logger.error("❌ ESPN API health check failed; schedules will be empty until it recovers")
    return False


async def _serve(bot: GameThreadBot) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, bot.request_shutdown)
    async with bot:
        await bot.start(Config.DISCORD_TOKEN)


def main():
    try:
        Config.validate_config()
    except ValueError as e:
        raise SystemExit(f"❌ {e}. Check your .env file.")

    bot = GameThreadBot()
    try:
        asyncio.run(_serve(bot))
    except KeyboardInterrupt:
        pass
