"""
Permission checks and account resolution for Discord commands.
"""

from typing import Optional
import discord

from league.config import Config
from league.data_models.player import PlayerProfile


def is_bot_owner(interaction: discord.Interaction) -> bool:
    """True if the interaction user is the configured bot owner."""
    return interaction.user.id == Config.OWNER_DISCORD_ID


async def get_linked_player(bot, user: discord.abc.User) -> Optional[PlayerProfile]:
    """The player linked to a Discord user, or None."""
    player = await bot.player_ops.get_player_by_discord_id(user.id)
    return PlayerProfile.from_model(player) if player else None


async def is_league_admin(interaction: discord.Interaction) -> bool:
    """
    App command check: the bot owner, or a linked player flagged as admin.

    Used with ``app_commands.check``; returning False raises CheckFailure,
    which the bot's global error handler turns into an admin-only embed.
    """
    if is_bot_owner(interaction):
        return True
    player = await get_linked_player(interaction.client, interaction.user)
    return bool(player and player.is_admin)
