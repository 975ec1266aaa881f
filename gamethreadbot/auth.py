from __future__ import annotations

import discord

from .config import logger


DENIED_MSG = "You do not have permission to use this command. Moderator role required."


def is_moderator(interaction: discord.Interaction, moderator_role_id: int) -> bool:
    member = interaction.user
    roles = getattr(member, "roles", None)
    if not roles:
        return False
    return any(role.id == moderator_role_id for role in roles)


async def guard_moderator(interaction: discord.Interaction, moderator_role_id: int) -> bool:
    if not is_moderator(interaction, moderator_role_id):
        logger.info(f"Denied /{getattr(interaction.command, 'name', '?')} for user {interaction.user}")
        await interaction.response.send_message(DENIED_MSG, ephemeral=True)
        return False
    return True
