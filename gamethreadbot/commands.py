from __future__ import annotations

from typing import Awaitable, Callable

import discord
from discord import app_commands

from .auth import guard_moderator
from .config import logger
from .formatting import fmt_status_report
from .orchestrator import Orchestrator

# Constants for common messages
GENERIC_ERROR_MSG = "❌ An error occurred while processing your command. Please check the logs for details."


async def _reply_error(interaction: discord.Interaction) -> None:
    try:
        if interaction.response.is_done():
            await interaction.edit_original_response(content=GENERIC_ERROR_MSG)
        else:
            await interaction.response.send_message(GENERIC_ERROR_MSG, ephemeral=True)
    except discord.HTTPException as e:
        logger.error(f"Could not deliver error reply: {e}")


async def _run_guarded(
    interaction: discord.Interaction,
    moderator_role_id: int,
    name: str,
    handler: Callable[[], Awaitable[str]],
) -> None:
    """Role check, defer, run `handler` and edit the ephemeral reply with its result."""
    if not await guard_moderator(interaction, moderator_role_id):
        return
    try:
        await interaction.response.defer(ephemeral=True, thinking=True)
        reply = await handler()
        await interaction.edit_original_response(content=reply)
    except Exception as e:
        logger.error(f"Error handling /{name}: {e}", exc_info=True)
        await _reply_error(interaction)


async def refresh_schedule_cmd(interaction: discord.Interaction, orchestrator: Orchestrator, moderator_role_id: int):
    async def handler() -> str:
        fetched = await orchestrator.refresh_all_schedules()
        lines = ["✅ Schedule refreshed successfully for all sports!"]
        lines += [f"{sport.emoji} {sport.display_name}: {count} game(s)" for sport, count in fetched.items()]
        lines.append(f"⏰ Game day checks registered: {len(orchestrator.scheduler.keys())}")
        return "\n".join(lines)

    await _run_guarded(interaction, moderator_role_id, "refresh-schedule", handler)


async def check_games_today_cmd(interaction: discord.Interaction, orchestrator: Orchestrator, moderator_role_id: int):
    async def handler() -> str:
        threads_created, jobs_scheduled = await orchestrator.check_today()
        reply = f"✅ Checked today's games. Created {threads_created} thread(s)."
        if jobs_scheduled > 0:
            reply += f"\nScheduled {jobs_scheduled} new game day job(s)."
        else:
            reply += "\nNo new game day jobs needed."
        return reply

    await _run_guarded(interaction, moderator_role_id, "check-games-today", handler)


async def bot_status_cmd(interaction: discord.Interaction, orchestrator: Orchestrator, moderator_role_id: int):
    async def handler() -> str:
        status = orchestrator.status()
        return fmt_status_report(
            status.counters,
            status.todays_games,
            status.upcoming,
            status.opponents,
            status.next_weekly_run,
            status.job_count,
            orchestrator.store.tz,
        )

    await _run_guarded(interaction, moderator_role_id, "bot-status", handler)


def build_commands(orchestrator: Orchestrator, moderator_role_id: int) -> list[app_commands.Command]:
    @app_commands.command(
        name="refresh-schedule",
        description="Manually refresh the game schedule and game day jobs",
    )
    @app_commands.default_permissions(manage_channels=True)
    @app_commands.guild_only()
    async def refresh_schedule(interaction: discord.Interaction) -> None:
        await refresh_schedule_cmd(interaction, orchestrator, moderator_role_id)

    @app_commands.command(
        name="check-games-today",
        description="Check for games today and create threads if needed",
    )
    @app_commands.default_permissions(manage_channels=True)
    @app_commands.guild_only()
    async def check_games_today(interaction: discord.Interaction) -> None:
        await check_games_today_cmd(interaction, orchestrator, moderator_role_id)

    @app_commands.command(
        name="bot-status",
        description="Check the bot status and schedule information",
    )
    @app_commands.default_permissions(manage_channels=True)
    @app_commands.guild_only()
    async def bot_status(interaction: discord.Interaction) -> None:
        await bot_status_cmd(interaction, orchestrator, moderator_role_id)

    return [refresh_schedule, check_games_today, bot_status]
