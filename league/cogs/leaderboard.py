import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional
from league.config import Config
from league.views.leaderboard import LeaderboardView
from league.services.rate_limiter import rate_limit
from league.utils.checks import get_linked_player
from league.utils.embeds import build_leaderboard_embed, build_profile_embed
from league.utils.error_embeds import ErrorEmbeds
import logging

logger = logging.getLogger(__name__)

class LeaderboardCog(commands.Cog):
    """League standings commands"""

    def __init__(self, bot):
        self.bot = bot
        self.leaderboard_service = bot.leaderboard_service

    @app_commands.command(name="leaderboard", description="View the league standings")
    @app_commands.describe(page="Page to open (defaults to the page you are on)")
    @rate_limit("leaderboard", limit=5, window=60)
    async def leaderboard(self, interaction: discord.Interaction, page: Optional[int] = None):
        """Display the paginated league leaderboard."""
        await interaction.response.defer()

        try:
            page_size = Config.LEADERBOARD_PAGE_SIZE
            viewer = await get_linked_player(self.bot, interaction.user)
            viewer_id = viewer.player_id if viewer else None

            if page is None:
                page = await self.leaderboard_service.find_page_of(viewer_id, page_size) if viewer_id else 1

            page_data = await self.leaderboard_service.get_page(page=page, page_size=page_size)
            embed = build_leaderboard_embed(page_data, viewer_id=viewer_id)

            view = LeaderboardView(
                leaderboard_service=self.leaderboard_service,
                current_page=page_data.current_page,
                total_pages=page_data.total_pages,
                page_size=page_size,
                viewer_id=viewer_id
            )

            await interaction.followup.send(embed=embed, view=view)

        except ValueError as e:
            await interaction.followup.send(embed=ErrorEmbeds.invalid_input(str(e)))
        except Exception as e:
            logger.error(f"Error in leaderboard command: {e}", exc_info=True)
            await interaction.followup.send(embed=ErrorEmbeds.command_error("An error occurred while fetching the standings. Please try again later."))

    @app_commands.command(name="rank", description="Show your rank and movement since last week")
    @app_commands.describe(member="The player to look up (defaults to you)")
    @rate_limit("rank", limit=5, window=60)
    async def rank(self, interaction: discord.Interaction, member: Optional[discord.Member] = None):
        await interaction.response.defer()

        player = await get_linked_player(self.bot, member or interaction.user)
        if player is None:
            await interaction.followup.send(embed=ErrorEmbeds.account_not_linked(member))
            return

        leaderboard = await self.leaderboard_service.get_leaderboard()
        entry = leaderboard.entry_for(player.player_id)
        await interaction.followup.send(
            embed=build_profile_embed(player, entry.position_delta if entry else 0)
        )

async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
