"""
Player account commands.

Links a Discord account to a league player by checking the player's school
email and credential, the same details used to sign in to the league site.
"""

import discord
from discord.ext import commands
from discord import app_commands

from league.utils.error_embeds import ErrorEmbeds
from league.utils.exceptions import LeagueError
import logging

logger = logging.getLogger(__name__)


class PlayerCog(commands.Cog):
    """Player account commands."""

    def __init__(self, bot):
        self.bot = bot
        self.player_ops = bot.player_ops

    @app_commands.command(name="link-account", description="Link your Discord account to your league player")
    @app_commands.describe(
        school_email="The school email you were registered with",
        password="Your league password"
    )
    @app_commands.checks.cooldown(rate=3, per=300.0, key=lambda i: i.user.id)
    async def link_account(self, interaction: discord.Interaction, school_email: str, password: str):
        """Verify credentials and attach this Discord account to the player."""
        # Ephemeral so the credential never shows up in the channel
        await interaction.response.defer(ephemeral=True)

        try:
            profile = await self.player_ops.authenticate(school_email, password)
            await self.player_ops.link_discord_account(profile.player_id, interaction.user.id)
        except LeagueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.from_error(e), ephemeral=True)
            return

        logger.info(f"Discord user {interaction.user.id} linked to Player {profile.player_id}")
        embed = discord.Embed(
            title="✅ Account Linked",
            description=f"You are now playing as **{profile.name}** (rank #{profile.rank}).\n\nUse `/my-match` to see your current match.",
            color=discord.Color.green()
        )
        await interaction.followup.send(embed=embed, ephemeral=True)


async def setup(bot):
    await bot.add_cog(PlayerCog(bot))
